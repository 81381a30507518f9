"""Durable log of notifications that no provider accepted."""

import datetime
import logging
import threading
from collections.abc import Callable, Iterable, Iterator

from sqlalchemy.orm import Session, sessionmaker

from shared.db import FailureLogRecord, FailureLogRepository
from shared.enums import NotificationKind

from dispatch_engine.models import (
    AttemptOutcome,
    FailureLogEntry,
    NotificationRequest,
    dump_attempts,
    load_attempts,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _aware(value: datetime.datetime | None) -> datetime.datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def _to_entry(record: FailureLogRecord) -> FailureLogEntry:
    return FailureLogEntry(
        request=NotificationRequest(
            kind=NotificationKind(record.kind),
            recipient=record.recipient,
            body=record.body,
            correlation_id=record.correlation_id,
        ),
        attempts=load_attempts(record.attempts),
        logged_at=_aware(record.logged_at),
        acknowledged=record.acknowledged,
        acknowledged_at=_aware(record.acknowledged_at),
        times_recorded=record.times_recorded,
    )


class FailureLogView:
    """Restartable, lazily evaluated listing of the failure log.

    Each iteration opens its own session and re-queries, so a view taken
    before new failures were recorded still shows them.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        include_acknowledged: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._include_acknowledged = include_acknowledged

    def __iter__(self) -> Iterator[FailureLogEntry]:
        with self._session_factory() as session:
            repo = FailureLogRepository(session)
            for record in repo.iter_newest_first(
                include_acknowledged=self._include_acknowledged
            ):
                yield _to_entry(record)


class DurableFailureLog:
    """Append-or-overwrite store of undelivered notifications.

    Entries are keyed by correlation id and persisted through SQLAlchemy,
    so they survive process restarts. Writes are serialized within a
    process; the upsert itself is atomic across processes.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._lock = threading.Lock()

    def record(
        self,
        request: NotificationRequest,
        attempts: Iterable[AttemptOutcome],
    ) -> FailureLogEntry:
        attempts = tuple(attempts)
        with self._lock, self._session_factory() as session:
            record = FailureLogRepository(session).upsert(
                correlation_id=request.correlation_id,
                kind=str(request.kind),
                recipient=request.recipient,
                body=request.body,
                attempts=dump_attempts(attempts),
                logged_at=self._clock(),
            )
            session.commit()
            entry = _to_entry(record)

        logger.info(
            "Failure recorded for manual follow-up",
            extra={
                "correlation_id": request.correlation_id,
                "kind": str(request.kind),
                "times_recorded": entry.times_recorded,
            },
        )
        return entry

    def list(self, *, include_acknowledged: bool = True) -> FailureLogView:
        """Entries newest first. The result can be iterated more than once."""
        return FailureLogView(
            self._session_factory, include_acknowledged=include_acknowledged
        )

    def get(self, correlation_id: str) -> FailureLogEntry | None:
        with self._session_factory() as session:
            record = FailureLogRepository(session).get(correlation_id)
            return _to_entry(record) if record is not None else None

    def count(self, *, include_acknowledged: bool = True) -> int:
        with self._session_factory() as session:
            return FailureLogRepository(session).count(
                include_acknowledged=include_acknowledged
            )

    def acknowledge(self, correlation_id: str) -> bool:
        """Mark an entry as handled. Returns False if no such entry exists."""
        with self._lock, self._session_factory() as session:
            record = FailureLogRepository(session).acknowledge(
                correlation_id, self._clock()
            )
            if record is None:
                return False
            session.commit()

        logger.info("Failure acknowledged", extra={"correlation_id": correlation_id})
        return True

    def clear(self) -> int:
        """Delete every entry. Returns how many were removed."""
        with self._lock, self._session_factory() as session:
            removed = FailureLogRepository(session).delete_all()
            session.commit()

        logger.info("Failure log cleared", extra={"removed": removed})
        return removed
