"""Value types flowing through the dispatch pipeline."""

import datetime
from dataclasses import dataclass, field

from pydantic import TypeAdapter

from shared.enums import AttemptResult, CapabilityFlag, NotificationKind


@dataclass(frozen=True)
class NotificationRequest:
    """One rendered notification, ready to hand to a provider."""

    kind: NotificationKind
    recipient: str
    body: str
    correlation_id: str


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """Static configuration of one adapter, built from settings."""

    name: str
    priority: int
    capabilities: frozenset[CapabilityFlag] = frozenset()
    credentials_present: bool = False

    def has(self, flag: CapabilityFlag) -> bool:
        return flag in self.capabilities


@dataclass(frozen=True)
class AttemptOutcome:
    """Outcome of handing a notification to one provider."""

    provider: str
    started_at: datetime.datetime
    duration_ms: int
    result: AttemptResult
    provider_message: str | None = None

    @property
    def attempted(self) -> bool:
        return self.result != AttemptResult.SKIPPED


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """What the caller gets back from a dispatch.

    ``final_provider`` is set iff ``succeeded``. ``failure_logged`` is
    set by the engine once an unsuccessful dispatch has been written to
    the durable failure log.
    """

    succeeded: bool
    attempts: tuple[AttemptOutcome, ...]
    correlation_id: str
    final_provider: str | None = None
    failure_logged: bool = False

    @property
    def attempted(self) -> tuple[AttemptOutcome, ...]:
        return tuple(a for a in self.attempts if a.attempted)

    @property
    def skipped(self) -> tuple[AttemptOutcome, ...]:
        return tuple(a for a in self.attempts if not a.attempted)

    def summary(self) -> dict[str, object]:
        """JSON-friendly view used by the Celery task, CLI and HTTP API."""
        return {
            "correlation_id": self.correlation_id,
            "succeeded": self.succeeded,
            "final_provider": self.final_provider,
            "failure_logged": self.failure_logged,
            "attempts": dump_attempts(self.attempts),
        }


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    body: str
    recipient: str
    correlation_id: str


@dataclass(frozen=True, slots=True)
class FailureLogEntry:
    """A notification waiting for manual follow-up."""

    request: NotificationRequest
    attempts: tuple[AttemptOutcome, ...]
    logged_at: datetime.datetime
    acknowledged: bool = False
    acknowledged_at: datetime.datetime | None = None
    times_recorded: int = field(default=1, compare=False)

    @property
    def correlation_id(self) -> str:
        return self.request.correlation_id

    def summary(self) -> dict[str, object]:
        return {
            "correlation_id": self.correlation_id,
            "kind": str(self.request.kind),
            "recipient": self.request.recipient,
            "body": self.request.body,
            "logged_at": self.logged_at.isoformat(),
            "acknowledged": self.acknowledged,
            "acknowledged_at": (
                self.acknowledged_at.isoformat() if self.acknowledged_at else None
            ),
            "times_recorded": self.times_recorded,
            "attempts": dump_attempts(self.attempts),
        }


_ATTEMPTS_ADAPTER = TypeAdapter(list[AttemptOutcome])


def dump_attempts(attempts: tuple[AttemptOutcome, ...] | list[AttemptOutcome]) -> list[dict]:
    """Serialize attempts to JSON-compatible dicts."""
    return _ATTEMPTS_ADAPTER.dump_python(list(attempts), mode="json")


def load_attempts(raw: list[dict]) -> tuple[AttemptOutcome, ...]:
    """Inverse of :func:`dump_attempts`."""
    return tuple(_ATTEMPTS_ADAPTER.validate_python(raw))
