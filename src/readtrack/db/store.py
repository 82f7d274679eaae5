"""SQLite database operations.

Handles database connection, session management, and the per-user document
store. Every read and write goes through a UserStore bound to one user id;
no query can reach another user's records.
"""

import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Generator, Optional, TypeVar

from sqlalchemy import create_engine, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..dates import to_iso
from ..errors import NotFoundError, PermissionDeniedError, TransientWriteError
from .live import LiveQueryHub, Subscription
from .models import Base, Book, Goal, ReadingSession
from .schemas import (
    BookCreate,
    BookRecord,
    BookStatus,
    GoalCreate,
    GoalRecord,
    ReadingSessionCreate,
    ReadingSessionRecord,
)

BOOKS = "userBooks"
SESSIONS = "readingSessions"
GOALS = "goals"

T = TypeVar("T")


class Database:
    """Database connection and session manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:". If None, uses
                     READTRACK_DB_PATH env var or the default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "READTRACK_DB_PATH",
                str(Path.home() / ".readtrack" / "readtrack.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if self._is_memory:
            # One shared connection so every session sees the same database
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.live = LiveQueryHub()

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            raise TransientWriteError(f"Database unavailable: {e.orig}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def for_user(self, user_id: Optional[str]) -> "UserStore":
        """Open the namespace of an authenticated user.

        Raises:
            PermissionDeniedError: If no user id is given
        """
        if not user_id:
            raise PermissionDeniedError("Sign in to access your library.")
        return UserStore(self, user_id)

    def close(self) -> None:
        """Close live queries and dispose of the engine."""
        self.live.close_all()
        self.engine.dispose()


class UserStore:
    """Collections of a single user."""

    def __init__(self, db: Database, user_id: str):
        self.db = db
        self.user_id = user_id

    def _changed(self, collection: str) -> None:
        self.db.live.publish(self.user_id, collection)

    # ========================================================================
    # Books
    # ========================================================================

    def create_book(self, book: BookCreate, created_at: Optional[datetime] = None) -> BookRecord:
        """Create a new book record at page 0."""
        with self.db.get_session() as s:
            db_book = Book(
                user_id=self.user_id,
                title=book.title,
                author=book.author,
                status=book.status.value,
                total_pages=book.total_pages,
                current_page=0,
                rating=book.rating,
                review=book.review,
            )
            if created_at is not None:
                db_book.created_at = to_iso(created_at)
            s.add(db_book)
            s.flush()
            record = BookRecord.model_validate(db_book)

        self._changed(BOOKS)
        return record

    def _get_book(self, s: Session, book_id: str) -> Optional[Book]:
        book = s.get(Book, book_id)
        if book is None or book.user_id != self.user_id:
            return None
        return book

    def get_book(self, book_id: str) -> Optional[BookRecord]:
        """Get a book by ID."""
        with self.db.get_session() as s:
            book = self._get_book(s, book_id)
            return BookRecord.model_validate(book) if book else None

    def list_books(self, status: Optional[BookStatus] = None) -> list[BookRecord]:
        """Get the user's books, optionally filtered by status."""
        with self.db.get_session() as s:
            stmt = select(Book).where(Book.user_id == self.user_id)
            if status is not None:
                stmt = stmt.where(Book.status == status.value)
            stmt = stmt.order_by(Book.created_at)
            return [BookRecord.model_validate(b) for b in s.execute(stmt).scalars().all()]

    def update_book(
        self,
        book_id: str,
        current_page: Optional[int] = None,
        status: Optional[BookStatus] = None,
        finished_at: Optional[datetime] = None,
    ) -> BookRecord:
        """Apply a partial update. Only given fields change.

        Raises:
            NotFoundError: If the book is not in this user's namespace
        """
        with self.db.get_session() as s:
            book = self._get_book(s, book_id)
            if not book:
                raise NotFoundError("Book", book_id)

            if current_page is not None:
                book.current_page = current_page
            if status is not None:
                book.status = status.value
            if finished_at is not None:
                book.finished_at = to_iso(finished_at)

            s.flush()
            record = BookRecord.model_validate(book)

        self._changed(BOOKS)
        return record

    def delete_book(self, book_id: str) -> bool:
        """Delete a book. Its sessions are kept."""
        with self.db.get_session() as s:
            book = self._get_book(s, book_id)
            if not book:
                return False
            s.delete(book)

        self._changed(BOOKS)
        return True

    def watch_books(self, status: Optional[BookStatus] = None) -> Subscription[list[BookRecord]]:
        """Live view of the user's books."""
        return self.db.live.subscribe(self.user_id, BOOKS, lambda: self.list_books(status))

    # ========================================================================
    # Reading Sessions
    # ========================================================================

    def add_session(
        self, data: ReadingSessionCreate, created_at: Optional[datetime] = None
    ) -> ReadingSessionRecord:
        """Append a reading session."""
        with self.db.get_session() as s:
            db_session = ReadingSession(
                user_id=self.user_id,
                book_id=data.book_id,
                book_title=data.book_title,
                duration_seconds=data.duration_seconds,
                device=data.device.value,
            )
            if created_at is not None:
                db_session.created_at = to_iso(created_at)
            s.add(db_session)
            s.flush()
            record = ReadingSessionRecord.model_validate(db_session)

        self._changed(SESSIONS)
        return record

    def list_sessions(
        self,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> list[ReadingSessionRecord]:
        """Get reading sessions, optionally created at or after since."""
        with self.db.get_session() as s:
            stmt = select(ReadingSession).where(ReadingSession.user_id == self.user_id)
            if since is not None:
                stmt = stmt.where(ReadingSession.created_at >= to_iso(since))
            order = ReadingSession.created_at.desc() if newest_first else ReadingSession.created_at
            stmt = stmt.order_by(order)
            if limit is not None:
                stmt = stmt.limit(limit)
            return [
                ReadingSessionRecord.model_validate(r) for r in s.execute(stmt).scalars().all()
            ]

    def watch_sessions(
        self,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        newest_first: bool = False,
    ) -> Subscription[list[ReadingSessionRecord]]:
        """Live view of reading sessions."""
        return self.db.live.subscribe(
            self.user_id,
            SESSIONS,
            lambda: self.list_sessions(since=since, limit=limit, newest_first=newest_first),
        )

    # ========================================================================
    # Goals
    # ========================================================================

    def create_goal(self, goal: GoalCreate, created_at: Optional[datetime] = None) -> GoalRecord:
        """Create a goal with its manual counter at 0."""
        with self.db.get_session() as s:
            db_goal = Goal(
                user_id=self.user_id,
                name=goal.name,
                unit=goal.unit.value,
                total=goal.total,
                current=0,
                deadline=to_iso(goal.deadline),
            )
            if created_at is not None:
                db_goal.created_at = to_iso(created_at)
            s.add(db_goal)
            s.flush()
            record = GoalRecord.model_validate(db_goal)

        self._changed(GOALS)
        return record

    def _get_goal(self, s: Session, goal_id: str) -> Optional[Goal]:
        goal = s.get(Goal, goal_id)
        if goal is None or goal.user_id != self.user_id:
            return None
        return goal

    def get_goal(self, goal_id: str) -> Optional[GoalRecord]:
        """Get a goal by ID."""
        with self.db.get_session() as s:
            goal = self._get_goal(s, goal_id)
            return GoalRecord.model_validate(goal) if goal else None

    def list_goals(self) -> list[GoalRecord]:
        """Get all goals, newest first."""
        with self.db.get_session() as s:
            stmt = (
                select(Goal)
                .where(Goal.user_id == self.user_id)
                .order_by(Goal.created_at.desc())
            )
            return [GoalRecord.model_validate(g) for g in s.execute(stmt).scalars().all()]

    def set_goal_current(self, goal_id: str, current: float) -> GoalRecord:
        """Overwrite the manual progress counter.

        Raises:
            NotFoundError: If the goal is not in this user's namespace
        """
        with self.db.get_session() as s:
            goal = self._get_goal(s, goal_id)
            if not goal:
                raise NotFoundError("Goal", goal_id)
            goal.current = current
            s.flush()
            record = GoalRecord.model_validate(goal)

        self._changed(GOALS)
        return record

    def delete_goal(self, goal_id: str) -> bool:
        """Delete a goal."""
        with self.db.get_session() as s:
            goal = self._get_goal(s, goal_id)
            if not goal:
                return False
            s.delete(goal)

        self._changed(GOALS)
        return True

    def watch_goals(self) -> Subscription[list[GoalRecord]]:
        """Live view of the user's goals."""
        return self.db.live.subscribe(self.user_id, GOALS, self.list_goals)

    def watch(self, collections: list[str], query: Callable[[], T]) -> Subscription[T]:
        """Live view of any query over several of the user's collections."""
        return self.db.live.subscribe(self.user_id, collections, query)

    # ========================================================================
    # Export
    # ========================================================================

    def export_documents(self) -> dict[str, dict[str, Any]]:
        """All of the user's documents keyed by collection and id."""
        with self.db.get_session() as s:
            result: dict[str, dict[str, Any]] = {}
            for name, model in ((BOOKS, Book), (SESSIONS, ReadingSession), (GOALS, Goal)):
                rows = s.execute(select(model).where(model.user_id == self.user_id)).scalars()
                result[name] = {row.id: row.to_document() for row in rows}
            return result
