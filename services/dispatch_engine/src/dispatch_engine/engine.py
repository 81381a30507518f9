"""Dispatch engine facade: render, orchestrate, record failures."""

import dataclasses
import datetime
import functools
import logging
from collections.abc import Callable
from typing import Any

import httpx
from sqlalchemy.exc import SQLAlchemyError

from shared.config import FailureLogDBConfig
from shared.db import create_db_engine, create_session_factory, init_schema
from shared.enums import NotificationKind
from shared.events import parse_payload

from dispatch_engine.config import DispatchConfig
from dispatch_engine.errors import InvalidEventData
from dispatch_engine.failure_log import DurableFailureLog
from dispatch_engine.health import ProviderHealthRegistry
from dispatch_engine.models import DispatchResult, NotificationRequest
from dispatch_engine.orchestrator import FallbackOrchestrator
from dispatch_engine.providers import ProviderRegistry, create_default_registry
from dispatch_engine.renderer import render

logger = logging.getLogger(__name__)

_MAX_CORRELATION_ID_LENGTH = 128


class DispatchEngine:
    """Single entry point for sending salon notifications.

    ``send`` raises only :class:`InvalidEventData`, and only before any
    provider is tried. Undelivered notifications are written to the
    failure log and reported through the returned ``DispatchResult``.
    """

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        failure_log: DurableFailureLog,
        config: DispatchConfig,
        registry_factory: Callable[[], ProviderRegistry] | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._failure_log = failure_log
        self._config = config
        self._registry_factory = registry_factory

    @property
    def failure_log(self) -> DurableFailureLog:
        return self._failure_log

    @property
    def orchestrator(self) -> FallbackOrchestrator:
        return self._orchestrator

    @property
    def operator_phone(self) -> str:
        return self._config.operator_phone

    def send(
        self,
        kind: str,
        event_data: Any,
        *,
        correlation_id: str | None = None,
    ) -> DispatchResult:
        message = render(
            kind,
            event_data,
            operator_phone=self._config.operator_phone,
            default_country_code=self._config.default_country_code,
            max_length=self._config.max_body_length,
        )
        if correlation_id is not None:
            _check_correlation_id(kind, correlation_id)

        request = NotificationRequest(
            kind=NotificationKind(kind),
            recipient=message.recipient,
            body=message.body,
            correlation_id=correlation_id or message.correlation_id,
        )
        result = self._orchestrator.dispatch(request)
        if result.succeeded:
            return result

        log_ctx = {
            "correlation_id": request.correlation_id,
            "kind": str(request.kind),
            "recipient": request.recipient,
            "attempts": [
                f"{a.provider}:{a.result}" for a in result.attempts
            ],
        }
        try:
            self._failure_log.record(request, result.attempts)
        except SQLAlchemyError:
            logger.exception(
                "Notification not delivered and failure log write failed",
                extra={**log_ctx, "body": request.body},
            )
            return result

        logger.error("Notification not delivered by any provider", extra=log_ctx)
        return dataclasses.replace(result, failure_logged=True)

    def notify_booking(self, event_data: Any) -> list[DispatchResult]:
        """Tell the operator about a new booking and confirm it to the customer.

        The two messages are independent: the customer confirmation is sent
        whenever the booking carries a customer phone, whatever happened to
        the operator notification.
        """
        results = [self.send(NotificationKind.BOOKING_CREATED, event_data)]
        if _customer_phone(event_data):
            results.append(self.send(NotificationKind.BOOKING_CONFIRMATION, event_data))
        return results

    def notify_payment(self, event_data: Any) -> DispatchResult:
        return self.send(NotificationKind.PAYMENT_RECEIVED, event_data)

    def send_test(self, note: str | None = None) -> DispatchResult:
        """Send a test message to the operator phone."""
        event_data: dict[str, Any] = {
            "requestedAt": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        if note:
            event_data["note"] = note
        return self.send(NotificationKind.GENERIC_TEST, event_data)

    def reload(self) -> list[str]:
        """Rebuild adapters from configuration and clear health flags.

        Without a registry factory only the health flags are cleared.
        Returns the names of the active providers.
        """
        if self._registry_factory is None:
            self._orchestrator.health.reset()
        else:
            self._orchestrator.reload(self._registry_factory())
        return [d.name for d in self._orchestrator.registry.descriptors()]

    def health_snapshot(self) -> list[dict[str, object]]:
        return self._orchestrator.provider_status()

    def close(self) -> None:
        self._orchestrator.close()


def _check_correlation_id(kind: str, correlation_id: str) -> None:
    if not correlation_id.strip() or len(correlation_id) > _MAX_CORRELATION_ID_LENGTH:
        raise InvalidEventData(
            kind,
            f"correlation_id must be 1-{_MAX_CORRELATION_ID_LENGTH} non-blank characters",
        )


def _customer_phone(event_data: Any) -> str | None:
    try:
        payload = parse_payload(NotificationKind.BOOKING_CREATED, event_data)
    except ValueError:
        return None
    return payload.customer_phone


def build_engine(
    config: DispatchConfig | None = None,
    http_client: httpx.Client | None = None,
    db_config: FailureLogDBConfig | None = None,
) -> DispatchEngine:
    """Wire a DispatchEngine from environment configuration."""
    config = config or DispatchConfig()
    db_config = db_config or FailureLogDBConfig()

    db_engine = create_db_engine(db_config.dsn, echo=db_config.echo)
    init_schema(db_engine)
    failure_log = DurableFailureLog(create_session_factory(db_engine))

    client = http_client or httpx.Client(timeout=config.attempt_timeout_seconds)
    registry_factory = functools.partial(create_default_registry, client, config)

    orchestrator = FallbackOrchestrator(
        registry_factory(),
        ProviderHealthRegistry(),
        attempt_timeout=config.attempt_timeout_seconds,
    )
    logger.info(
        "Dispatch engine ready",
        extra={
            "providers": [d.name for d in orchestrator.registry.descriptors()],
            "failure_log_dsn": db_engine.url.render_as_string(hide_password=True),
        },
    )
    return DispatchEngine(orchestrator, failure_log, config, registry_factory)
