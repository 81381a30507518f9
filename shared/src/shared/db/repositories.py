"""Data access repositories with constructor-injected sessions."""

import datetime
from collections.abc import Iterator
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from shared.db.models import FailureLogRecord

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE.
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_OVERWRITTEN_FIELDS = ("kind", "recipient", "body", "attempts", "logged_at")


class FailureLogRepository:
    """Data access for the failure_log table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, correlation_id: str) -> FailureLogRecord | None:
        """Fetch an entry by correlation id."""
        return self._session.get(FailureLogRecord, correlation_id)

    def upsert(
        self,
        *,
        correlation_id: str,
        kind: str,
        recipient: str,
        body: str,
        attempts: list[dict[str, Any]],
        logged_at: datetime.datetime,
    ) -> FailureLogRecord:
        """Insert an entry, or overwrite the one with the same correlation id.

        Runs as a single INSERT ... ON CONFLICT DO UPDATE, so writers in
        other processes recording the same id never collide on the key.
        Overwriting resets the acknowledged flag: a re-recorded failure
        needs fresh manual handling.
        """
        values = {
            "correlation_id": correlation_id,
            "kind": kind,
            "recipient": recipient,
            "body": body,
            "attempts": attempts,
            "logged_at": logged_at,
            "acknowledged": False,
            "acknowledged_at": None,
            "times_recorded": 1,
        }
        dialect = self._session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise ValueError(f"failure log needs SQLite or PostgreSQL, not {dialect}")

        stmt = insert(FailureLogRecord).values(**values)
        overwrite = {field: stmt.excluded[field] for field in _OVERWRITTEN_FIELDS}
        stmt = stmt.on_conflict_do_update(
            index_elements=[FailureLogRecord.correlation_id],
            set_={
                **overwrite,
                "acknowledged": False,
                "acknowledged_at": None,
                "times_recorded": FailureLogRecord.times_recorded + 1,
            },
        )
        self._session.execute(stmt)
        return self._session.get_one(
            FailureLogRecord, correlation_id, populate_existing=True
        )

    def iter_newest_first(
        self, *, include_acknowledged: bool = True, batch_size: int = 100
    ) -> Iterator[FailureLogRecord]:
        """Stream entries ordered newest first, fetched in batches."""
        stmt = select(FailureLogRecord).order_by(
            FailureLogRecord.logged_at.desc(),
            FailureLogRecord.correlation_id.desc(),
        )
        if not include_acknowledged:
            stmt = stmt.where(FailureLogRecord.acknowledged.is_(False))
        stmt = stmt.execution_options(yield_per=batch_size)
        return iter(self._session.scalars(stmt))

    def count(self, *, include_acknowledged: bool = True) -> int:
        stmt = select(func.count()).select_from(FailureLogRecord)
        if not include_acknowledged:
            stmt = stmt.where(FailureLogRecord.acknowledged.is_(False))
        return int(self._session.scalar(stmt) or 0)

    def acknowledge(
        self, correlation_id: str, at: datetime.datetime
    ) -> FailureLogRecord | None:
        """Mark an entry as handled.

        Returns the updated entry, or None if not found.
        """
        record = self.get(correlation_id)
        if record is None:
            return None
        if not record.acknowledged:
            record.acknowledged = True
            record.acknowledged_at = at
            self._session.flush()
        return record

    def delete_all(self) -> int:
        """Remove every entry. Returns the number of rows deleted."""
        result = self._session.execute(delete(FailureLogRecord))
        return int(result.rowcount or 0)
