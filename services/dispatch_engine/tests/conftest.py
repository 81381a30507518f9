"""Test fixtures for dispatch_engine tests."""

import datetime
from collections.abc import Callable, Generator, Iterable
from pathlib import Path

import pytest

from shared.db import create_db_engine, create_session_factory, init_schema
from shared.enums import AttemptResult, NotificationKind

from dispatch_engine.config import DispatchConfig
from dispatch_engine.engine import DispatchEngine
from dispatch_engine.failure_log import DurableFailureLog
from dispatch_engine.health import ProviderHealthRegistry
from dispatch_engine.models import AttemptOutcome, NotificationRequest
from dispatch_engine.orchestrator import FallbackOrchestrator
from dispatch_engine.providers import ProviderAdapter, ProviderRegistry
from dispatch_engine.providers.base import describe


class StubAdapter(ProviderAdapter):
    """Adapter that replays scripted results instead of calling a provider.

    Each call pops the next result; the last one repeats. A result may be
    an exception instance to raise or a callable run before answering.
    """

    def __init__(
        self,
        name: str,
        priority: int,
        results: Iterable[AttemptResult | Exception] = (AttemptResult.SUCCESS,),
        *,
        credentials_present: bool = True,
        before_send: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(describe(name, priority, credentials_present))
        self._results = list(results)
        self._before_send = before_send
        self.calls: list[tuple[str, str]] = []

    def send(self, recipient: str, body: str) -> AttemptOutcome:
        self.calls.append((recipient, body))
        if self._before_send is not None:
            self._before_send()
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return AttemptOutcome(
            provider=self.name,
            started_at=datetime.datetime.now(datetime.timezone.utc),
            duration_ms=1,
            result=result,
            provider_message=f"{self.name} says {result}",
        )


def make_registry(*adapters: ProviderAdapter) -> ProviderRegistry:
    registry = ProviderRegistry()
    for adapter in adapters:
        registry.register(adapter)
    return registry


@pytest.fixture()
def stub() -> type[StubAdapter]:
    """The scripted adapter class (conftest modules are not importable)."""
    return StubAdapter


@pytest.fixture()
def registry_of() -> Callable[..., ProviderRegistry]:
    return make_registry


@pytest.fixture()
def dispatch_config() -> DispatchConfig:
    return DispatchConfig(
        operator_phone="+919740303404",
        default_country_code="91",
        max_body_length=1000,
        attempt_timeout_seconds=2.0,
    )


@pytest.fixture()
def session_factory(tmp_path: Path):
    """Session factory over a SQLite file, like a real deployment."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'failure_log.db'}")
    init_schema(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def failure_log(session_factory) -> DurableFailureLog:
    return DurableFailureLog(session_factory)


@pytest.fixture()
def health() -> ProviderHealthRegistry:
    return ProviderHealthRegistry()


@pytest.fixture()
def make_engine(
    failure_log: DurableFailureLog,
    health: ProviderHealthRegistry,
    dispatch_config: DispatchConfig,
) -> Generator[Callable[..., DispatchEngine], None, None]:
    """Build an engine over the given adapters and the test failure log."""
    engines: list[DispatchEngine] = []

    def _make(*adapters: ProviderAdapter, registry_factory=None) -> DispatchEngine:
        orchestrator = FallbackOrchestrator(
            make_registry(*adapters),
            health,
            attempt_timeout=dispatch_config.attempt_timeout_seconds,
        )
        engine = DispatchEngine(
            orchestrator, failure_log, dispatch_config, registry_factory
        )
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.close()


@pytest.fixture()
def booking_data() -> dict:
    """Scenario booking as the booking page sends it (camelCase keys)."""
    return {
        "customerName": "Priya Sharma",
        "services": ["Bridal Makeup", "Hair Styling", "Mehendi"],
        "date": "2026-10-17",
        "time": "11:00 AM",
        "amount": "15000",
        "bookingId": "AKP-20261017-001",
        "customerEmail": "priya@example.com",
        "customerPhone": "98450 12345",
    }


@pytest.fixture()
def payment_data(booking_data: dict) -> dict:
    return {**booking_data, "paymentMethod": "upi", "paymentId": "pay_Q1w2E3r4"}


@pytest.fixture()
def notification_request() -> NotificationRequest:
    return NotificationRequest(
        kind=NotificationKind.BOOKING_CREATED,
        recipient="+919740303404",
        body="NEW APPOINTMENT BOOKED!",
        correlation_id="booking-created:test-1",
    )
