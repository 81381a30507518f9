"""SQLAlchemy ORM models for the durable failure log."""

import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from shared.db.base import Base


class FailureLogRecord(Base):
    """A notification that exhausted every provider.

    Keyed by correlation id: recording the same logical event again
    overwrites the row instead of adding a second follow-up item.
    """

    __tablename__ = "failure_log"

    correlation_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    recipient: Mapped[str] = mapped_column(String(32), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    attempts: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )
    logged_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    acknowledged: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    acknowledged_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    times_recorded: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
