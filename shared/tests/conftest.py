"""Shared test fixtures for database tests (SQLite in-memory)."""

from collections.abc import Generator

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from shared.db import create_db_engine, init_schema


@pytest.fixture(scope="session")
def db_engine() -> Engine:
    """Create a single in-memory SQLite engine for the test session."""
    engine = create_db_engine("sqlite:///:memory:")
    init_schema(engine)
    return engine


@pytest.fixture()
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    """Transactional session that rolls back after each test."""
    connection = db_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection)

    yield session

    session.close()
    if transaction.is_active:
        transaction.rollback()
    connection.close()


@pytest.fixture()
def booking_data() -> dict:
    """Booking payload as the booking page sends it (camelCase keys)."""
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
