"""Database layer: failure-log model, repository, engine/session utilities."""

from shared.db.base import Base, create_db_engine, create_session_factory, init_schema
from shared.db.models import FailureLogRecord
from shared.db.repositories import FailureLogRepository

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "init_schema",
    "FailureLogRecord",
    "FailureLogRepository",
]
