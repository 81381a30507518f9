import datetime
from collections.abc import Generator
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

from shared.db import create_db_engine, create_session_factory, init_schema
from shared.enums import AttemptResult

from dispatch_engine.config import DispatchConfig
from dispatch_engine.engine import DispatchEngine
from dispatch_engine.failure_log import DurableFailureLog
from dispatch_engine.health import ProviderHealthRegistry
from dispatch_engine.models import AttemptOutcome
from dispatch_engine.orchestrator import FallbackOrchestrator
from dispatch_engine.providers import ProviderAdapter, ProviderRegistry
from dispatch_engine.providers.base import describe

from operator_api.app import create_app


class ScriptedAdapter(ProviderAdapter):
    """Answers every send with a fixed result; switchable from tests."""

    def __init__(self, name: str, priority: int, result: AttemptResult) -> None:
        super().__init__(describe(name, priority, True))
        self.result = result

    def send(self, recipient: str, body: str) -> AttemptOutcome:
        return AttemptOutcome(
            provider=self.name,
            started_at=datetime.datetime.now(datetime.timezone.utc),
            duration_ms=3,
            result=self.result,
            provider_message=str(self.result),
        )


@pytest.fixture()
def adapter() -> ScriptedAdapter:
    return ScriptedAdapter("TextLocal", 1, AttemptResult.SUCCESS)


@pytest.fixture()
def engine(tmp_path: Path, adapter: ScriptedAdapter) -> Generator[DispatchEngine, None, None]:
    db_engine = create_db_engine(f"sqlite:///{tmp_path / 'failure_log.db'}")
    init_schema(db_engine)

    registry = ProviderRegistry()
    registry.register(adapter)
    orchestrator = FallbackOrchestrator(registry, ProviderHealthRegistry())

    engine = DispatchEngine(
        orchestrator,
        DurableFailureLog(create_session_factory(db_engine)),
        DispatchConfig(operator_phone="+919740303404"),
    )
    yield engine
    engine.close()
    db_engine.dispose()


@pytest.fixture()
def app(engine: DispatchEngine) -> Flask:
    app = create_app(engine)
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def booking_data() -> dict:
    return {
        "customerName": "Priya Sharma",
        "services": ["Bridal Makeup", "Hair Styling"],
        "date": "2026-10-17",
        "time": "11:00 AM",
        "amount": "12000",
        "bookingId": "AKP-20261017-002",
        "customerPhone": "+91 98450 12345",
    }
