"""Pytest configuration and shared fixtures.

This module provides fixtures for testing readtrack, including a temporary
database, a per-user store, a fixed clock and sample records.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from readtrack.config import Config
from readtrack.db.schemas import (
    BookCreate,
    BookRecord,
    BookStatus,
    DeviceClass,
    GoalCreate,
    GoalUnit,
    ReadingSessionCreate,
)
from readtrack.db.store import Database, UserStore
from readtrack.reading.wakelock import WakeLock
from readtrack.saving import OptimisticSaver

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

# Wednesday noon, local time
NOW = datetime(2025, 6, 18, 12, 0).astimezone()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path(tmp_path: Path) -> Path:
    """Temporary database file path."""
    return tmp_path / "readtrack.db"


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a test database instance."""
    database = Database(str(temp_db_path))
    database.create_tables()
    yield database
    database.close()


@pytest.fixture
def store(db: Database) -> UserStore:
    """Store of the default test user."""
    return db.for_user(USER_ID)


@pytest.fixture
def other_store(db: Database) -> UserStore:
    """Store of a second user sharing the database."""
    return db.for_user(OTHER_USER_ID)


@pytest.fixture
def saver() -> Generator[OptimisticSaver, None, None]:
    """Optimistic saver with the default timeout."""
    s = OptimisticSaver(timeout=2.0)
    yield s
    s.shutdown(wait=True)


@pytest.fixture
def clock():
    """Clock frozen at NOW."""
    return lambda: NOW


@pytest.fixture
def wake_lock() -> MagicMock:
    """Wake lock double recording acquire/release calls."""
    return MagicMock(spec=WakeLock)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Configuration pointing at temporary files."""
    return Config(
        db_path=tmp_path / "app.db",
        state_path=tmp_path / "state.json",
        user_id=USER_ID,
        save_timeout=2.0,
        book_save_timeout=3.0,
        min_session_seconds=10,
        notify_demo=False,
        notify_demo_interval=10,
        notify_delay=3,
        notify_poll_interval=3600,
        log_level="WARNING",
        log_json=False,
    )


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(title="Dune", author="Frank Herbert", total_pages=688)


@pytest.fixture
def created_book(store: UserStore, sample_book_data: BookCreate) -> BookRecord:
    """Create and return a book in the database."""
    return store.create_book(sample_book_data)


@pytest.fixture
def multiple_books(store: UserStore) -> list[BookRecord]:
    """One book on each shelf, created a minute apart."""
    books_data = [
        BookCreate(title="Book One", author="Author A", total_pages=100),
        BookCreate(title="Book Two", author="Author B", total_pages=200, status=BookStatus.READING),
        BookCreate(title="Book Three", author="Author A", total_pages=300, status=BookStatus.READ),
    ]
    return [
        store.create_book(data, created_at=NOW - timedelta(minutes=10 - i))
        for i, data in enumerate(books_data)
    ]


@pytest.fixture
def add_session(store: UserStore):
    """Insert a reading session for a book at a given time."""

    def _add(book: BookRecord, seconds: int, created_at: datetime):
        return store.add_session(
            ReadingSessionCreate(
                book_id=book.id,
                book_title=book.title,
                duration_seconds=seconds,
                device=DeviceClass.DESKTOP,
            ),
            created_at=created_at,
        )

    return _add


@pytest.fixture
def make_goal(store: UserStore):
    """Insert a goal with an explicit creation time."""

    def _make(
        name: str,
        unit: GoalUnit,
        total: float,
        deadline: datetime,
        created_at: datetime = NOW - timedelta(days=30),
    ):
        return store.create_goal(
            GoalCreate(name=name, unit=unit, total=total, deadline=deadline),
            created_at=created_at,
        )

    return _make


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()
