"""Shared pytest fixtures for all test suites."""

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from backend.trip_actions.config import get_settings
from backend.trip_actions.db.engine import create_session_factory
from backend.trip_actions.db.inmemory import InMemoryItineraryStore
from backend.trip_actions.db.models import Base
from tests.fixtures import seed_in_memory, seed_sql


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Settings are cached per process; tests that patch env vars need a fresh copy."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> InMemoryItineraryStore:
    """In-memory store seeded with the shared itineraries."""
    return seed_in_memory(InMemoryItineraryStore())


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    """In-memory SQLite engine with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def sql_session(sqlite_engine: Engine) -> Iterator[Session]:
    """Session over a seeded SQLite database.

    Usage:
        def test_something(sql_session):
            store = SqlItineraryStore(sql_session)
    """
    with create_session_factory(sqlite_engine)() as session:
        seed_sql(session)
        yield session
