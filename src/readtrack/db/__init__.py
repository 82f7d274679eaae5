"""Per-user document store backed by SQLite."""

from .live import LiveQueryHub, Subscription
from .models import Book, Goal, ReadingSession
from .schemas import (
    BookCreate,
    BookRecord,
    BookStatus,
    DeviceClass,
    GoalCreate,
    GoalRecord,
    GoalUnit,
    ReadingSessionCreate,
    ReadingSessionRecord,
)
from .store import Database, UserStore

__all__ = [
    "LiveQueryHub",
    "Subscription",
    "Book",
    "Goal",
    "ReadingSession",
    "BookCreate",
    "BookRecord",
    "BookStatus",
    "DeviceClass",
    "GoalCreate",
    "GoalRecord",
    "GoalUnit",
    "ReadingSessionCreate",
    "ReadingSessionRecord",
    "Database",
    "UserStore",
]
