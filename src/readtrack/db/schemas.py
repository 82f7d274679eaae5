"""Pydantic schemas for data validation.

Enum values are the strings stored in the documents and must not change:
existing data written by other clients uses exactly these labels.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookStatus(str, Enum):
    """Reading status of a book."""

    TO_READ = "Por Leer"
    READING = "Leyendo"
    READ = "Leído"

    @classmethod
    def parse(cls, text: str) -> "BookStatus":
        """Accept a stored value, a member name or a dashed alias ("to-read")."""
        cleaned = text.strip()
        for status in cls:
            if cleaned == status.value:
                return status
        key = cleaned.upper().replace("-", "_").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown status: {text}") from None


class GoalUnit(str, Enum):
    """What a goal measures."""

    BOOKS = "Libros"
    PAGES = "Páginas"
    HOURS = "Horas"
    CHAPTERS = "Capítulos"  # manual

    @property
    def is_automated(self) -> bool:
        """Progress is derived from book and session records."""
        return self is not GoalUnit.CHAPTERS

    @classmethod
    def parse(cls, text: str) -> "GoalUnit":
        """Accept a stored value or a member name, case-insensitive."""
        cleaned = text.strip()
        for unit in cls:
            if cleaned == unit.value:
                return unit
        try:
            return cls[cleaned.upper()]
        except KeyError:
            raise ValueError(f"Unknown goal unit: {text}") from None


class DeviceClass(str, Enum):
    """Kind of device a session was recorded on."""

    MOBILE = "mobile"
    DESKTOP = "desktop"


# ============================================================================
# Book Schemas
# ============================================================================


class BookCreate(BaseModel):
    """Schema for creating a new book."""

    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    total_pages: int = Field(..., gt=0)
    status: BookStatus = BookStatus.TO_READ
    rating: int = 0
    review: str = ""

    @field_validator("title", "author", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Trim surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v


class BookRecord(BaseModel):
    """A stored book."""

    id: str
    title: str
    author: str
    status: BookStatus
    total_pages: int
    current_page: int = 0
    finished_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    rating: int = 0
    review: str = ""

    model_config = {"from_attributes": True}

    @property
    def percent(self) -> int:
        """Progress through the book, 0-100."""
        total = self.total_pages or 1
        return round(min(100, max(0, (self.current_page / total) * 100)))


# ============================================================================
# Reading Session Schemas
# ============================================================================


class ReadingSessionCreate(BaseModel):
    """Schema for recording a finished stopwatch session."""

    book_id: str
    book_title: str
    duration_seconds: int = Field(..., ge=0)
    device: DeviceClass = DeviceClass.DESKTOP


class ReadingSessionRecord(BaseModel):
    """A stored reading session."""

    id: str
    book_id: str
    book_title: str
    duration_seconds: int
    created_at: Optional[datetime] = None
    device: DeviceClass = DeviceClass.DESKTOP

    model_config = {"from_attributes": True}


# ============================================================================
# Goal Schemas
# ============================================================================


class GoalCreate(BaseModel):
    """Schema for creating a goal."""

    name: str = Field(..., min_length=1)
    unit: GoalUnit = GoalUnit.BOOKS
    total: float = Field(..., gt=0)
    deadline: datetime

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        """Trim surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("total")
    @classmethod
    def round_total(cls, v: float) -> float:
        """Targets are kept to two decimals."""
        return round(v, 2)


class GoalRecord(BaseModel):
    """A stored goal."""

    id: str
    name: str
    unit: GoalUnit
    total: float
    current: float = 0
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
