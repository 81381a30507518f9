"""Database foundation: declarative base class, engine and session factories."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


def create_db_engine(dsn: str, **kwargs: object) -> Engine:
    """Create a SQLAlchemy engine from a DSN string.

    SQLite connections are shared between the dispatching threads of one
    process, so ``check_same_thread`` is turned off for SQLite DSNs.
    PostgreSQL deployments should pass ``pool_pre_ping=True``.
    """
    if dsn.startswith("sqlite"):
        connect_args = dict(kwargs.pop("connect_args", None) or {})  # type: ignore[call-overload]
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    return create_engine(dsn, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a sessionmaker bound to the given engine.

    ``expire_on_commit=False`` keeps loaded failure-log rows usable after
    the session that produced them has committed and closed.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create any missing tables. Existing tables and rows are untouched."""
    # Import models so their tables are registered on Base.metadata.
    from shared.db import models  # noqa: F401

    Base.metadata.create_all(engine)
