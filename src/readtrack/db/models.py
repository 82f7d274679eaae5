"""SQLAlchemy ORM models for the per-user document store.

Tables:
- userBooks: books on the user's shelf
- readingSessions: timed reading sessions (append-only)
- goals: reading goals with deadlines

Column names follow the stored document fields (camelCase); the Python
attributes are snake_case. Every row belongs to exactly one user_id.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import BookStatus, DeviceClass


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class Book(Base):
    """Book document."""

    __tablename__ = "userBooks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=BookStatus.TO_READ.value, index=True
    )
    total_pages: Mapped[int] = mapped_column("totalPages", Integer, nullable=False)
    current_page: Mapped[int] = mapped_column("currentPage", Integer, default=0)
    finished_at: Mapped[Optional[str]] = mapped_column("finishedAt", String(32))

    # Hidden form fields, kept for compatibility with existing documents
    rating: Mapped[int] = mapped_column(Integer, default=0)
    review: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[str] = mapped_column("createdAt", String(32), default=utc_now_iso)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', status='{self.status}')>"

    def to_document(self) -> dict:
        """Stored document shape."""
        return {
            "title": self.title,
            "author": self.author,
            "status": self.status,
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
            "finishedAt": self.finished_at,
            "rating": self.rating,
            "review": self.review,
            "createdAt": self.created_at,
        }


class ReadingSession(Base):
    """Reading session document. Never updated after insert."""

    __tablename__ = "readingSessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    # No foreign key: sessions outlive deleted books and keep the title snapshot
    book_id: Mapped[str] = mapped_column("bookId", String(36), nullable=False, index=True)
    book_title: Mapped[str] = mapped_column("bookTitle", String(500), nullable=False)
    duration_seconds: Mapped[int] = mapped_column("durationSeconds", Integer, nullable=False)
    device: Mapped[str] = mapped_column(String(10), default=DeviceClass.DESKTOP.value)

    created_at: Mapped[str] = mapped_column(
        "createdAt", String(32), default=utc_now_iso, index=True
    )

    def __repr__(self) -> str:
        return f"<ReadingSession(id={self.id}, book_id={self.book_id}, seconds={self.duration_seconds})>"

    def to_document(self) -> dict:
        """Stored document shape."""
        return {
            "bookId": self.book_id,
            "bookTitle": self.book_title,
            "durationSeconds": self.duration_seconds,
            "createdAt": self.created_at,
            "device": self.device,
        }


class Goal(Base):
    """Goal document."""

    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    total: Mapped[float] = mapped_column(Float, nullable=False)
    current: Mapped[float] = mapped_column(Float, default=0)  # Chapters only
    deadline: Mapped[Optional[str]] = mapped_column(String(32))

    created_at: Mapped[str] = mapped_column("createdAt", String(32), default=utc_now_iso)

    def __repr__(self) -> str:
        return f"<Goal(id={self.id}, name='{self.name}', unit='{self.unit}')>"

    def to_document(self) -> dict:
        """Stored document shape."""
        return {
            "name": self.name,
            "unit": self.unit,
            "total": self.total,
            "current": self.current,
            "deadline": self.deadline,
            "createdAt": self.created_at,
        }
