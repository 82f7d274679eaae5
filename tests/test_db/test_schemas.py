"""Tests for Pydantic schemas and stored enum values."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from readtrack.db.schemas import BookCreate, BookRecord, BookStatus, GoalCreate, GoalUnit


class TestBookStatus:
    """Tests for BookStatus enum."""

    def test_stored_values(self):
        """Test the status labels written to documents."""
        assert BookStatus.TO_READ.value == "Por Leer"
        assert BookStatus.READING.value == "Leyendo"
        assert BookStatus.READ.value == "Leído"

    def test_parse(self):
        """Test parsing stored values, names and aliases."""
        assert BookStatus.parse("Leyendo") is BookStatus.READING
        assert BookStatus.parse("to-read") is BookStatus.TO_READ
        assert BookStatus.parse("READ") is BookStatus.READ

    def test_parse_unknown(self):
        """Test that unknown labels are rejected."""
        with pytest.raises(ValueError):
            BookStatus.parse("wishlist")


class TestGoalUnit:
    """Tests for GoalUnit enum."""

    def test_stored_values(self):
        """Test the unit labels written to documents."""
        assert [u.value for u in GoalUnit] == ["Libros", "Páginas", "Horas", "Capítulos"]

    def test_only_chapters_is_manual(self):
        """Test which units are computed automatically."""
        assert GoalUnit.BOOKS.is_automated
        assert GoalUnit.PAGES.is_automated
        assert GoalUnit.HOURS.is_automated
        assert not GoalUnit.CHAPTERS.is_automated

    def test_parse(self):
        """Test parsing names case-insensitively."""
        assert GoalUnit.parse("hours") is GoalUnit.HOURS
        assert GoalUnit.parse("Páginas") is GoalUnit.PAGES


class TestBookCreate:
    """Tests for BookCreate schema."""

    def test_defaults(self):
        """Test creating a book with only required fields."""
        book = BookCreate(title="  Test Book ", author="Author", total_pages=10)
        assert book.title == "Test Book"
        assert book.status is BookStatus.TO_READ
        assert book.rating == 0
        assert book.review == ""

    def test_empty_title_rejected(self):
        """Test that a blank title is rejected."""
        with pytest.raises(ValidationError):
            BookCreate(title="   ", author="Author", total_pages=10)

    def test_pages_must_be_positive(self):
        """Test that the page count must be above zero."""
        with pytest.raises(ValidationError):
            BookCreate(title="T", author="A", total_pages=0)


class TestBookRecord:
    """Tests for BookRecord helpers."""

    def test_percent(self):
        """Test progress percentage."""
        record = BookRecord(id="1", title="T", author="A", status=BookStatus.READING, total_pages=200, current_page=50)
        assert record.percent == 25


class TestGoalCreate:
    """Tests for GoalCreate schema."""

    def test_total_rounded(self):
        """Test that targets keep two decimals."""
        goal = GoalCreate(name="G", unit=GoalUnit.HOURS, total=1.23456, deadline=datetime(2025, 1, 1))
        assert goal.total == 1.23

    def test_total_must_be_positive(self):
        """Test that a zero target is rejected."""
        with pytest.raises(ValidationError):
            GoalCreate(name="G", unit=GoalUnit.BOOKS, total=0, deadline=datetime(2025, 1, 1))
