"""Tests for the book service."""

import threading
from unittest.mock import MagicMock

import pytest

from readtrack.db.schemas import BookStatus
from readtrack.db.store import UserStore
from readtrack.errors import NotFoundError, PermissionDeniedError, ValidationError
from readtrack.library.books import BookService
from readtrack.saving import OptimisticSaver, SaveOutcome


@pytest.fixture
def service(store: UserStore, saver: OptimisticSaver, clock) -> BookService:
    """Book service over the test store."""
    return BookService(store, saver, clock=clock)


class TestAddBook:
    """Tests for adding books."""

    def test_add_book(self, service: BookService, store: UserStore, clock):
        """Test adding a valid book."""
        result = service.add_book("Dune", "Frank Herbert", "688")

        assert result.outcome is SaveOutcome.CONFIRMED
        (book,) = store.list_books()
        assert book.title == "Dune"
        assert book.total_pages == 688
        assert book.current_page == 0
        assert book.status is BookStatus.TO_READ
        assert book.created_at == clock()

    def test_add_book_with_status(self, service: BookService, store: UserStore):
        """Test choosing the initial shelf."""
        service.add_book("Dune", "Frank Herbert", 688, BookStatus.READING)
        assert store.list_books()[0].status is BookStatus.READING

    @pytest.mark.parametrize(
        "title,author,pages",
        [("", "A", "10"), ("T", "  ", "10"), ("T", "A", ""), ("T", "A", None)],
    )
    def test_missing_fields(self, service: BookService, store: UserStore, title, author, pages):
        """Test that every field is required."""
        with pytest.raises(ValidationError, match="required"):
            service.add_book(title, author, pages)
        assert store.list_books() == []

    @pytest.mark.parametrize("pages", ["abc", "12.5", "0", "-3"])
    def test_invalid_pages(self, service: BookService, pages):
        """Test that the page count must be a positive whole number."""
        with pytest.raises(ValidationError, match="valid number"):
            service.add_book("T", "A", pages)

    def test_slow_save_proceeds(self, store: UserStore):
        """Test that a slow write is treated as a deferred success."""
        release = threading.Event()
        slow_store = MagicMock(wraps=store)
        slow_store.create_book.side_effect = lambda data, created_at=None: release.wait(5)
        saver = OptimisticSaver()
        service = BookService(slow_store, saver, save_timeout=0.05)

        result = service.add_book("T", "A", "10")

        assert result.outcome is SaveOutcome.TIMED_OUT
        release.set()
        saver.shutdown(wait=True)

    def test_permission_denied_surfaces(self, saver: OptimisticSaver):
        """Test that a refused write reaches the caller."""
        denied_store = MagicMock()
        denied_store.create_book.side_effect = PermissionDeniedError()
        service = BookService(denied_store, saver)

        with pytest.raises(PermissionDeniedError):
            service.add_book("T", "A", "10")


class TestUpdateProgress:
    """Tests for page progress edits."""

    def test_first_page_starts_reading(self, service: BookService, created_book):
        """Test a To-Read book moves to Reading."""
        result = service.update_progress(created_book.id, 50)

        assert result.value.current_page == 50
        assert result.value.status is BookStatus.READING
        assert result.value.finished_at is None

    def test_last_page_finishes_book(self, service: BookService, created_book, clock):
        """Test finishing stamps finishedAt with the current time."""
        result = service.update_progress(created_book.id, 688)

        assert result.value.status is BookStatus.READ
        assert result.value.finished_at == clock()

    def test_finished_at_stamped_once(self, service: BookService, store: UserStore, created_book, clock):
        """Test a second completion edit keeps the first timestamp."""
        service.update_progress(created_book.id, 688)
        first = store.get_book(created_book.id).finished_at

        later = BookService(service.store, service.saver, clock=lambda: clock().replace(year=2026))
        later.update_progress(created_book.id, 688)

        assert store.get_book(created_book.id).finished_at == first

    def test_page_clamped(self, service: BookService, created_book):
        """Test pages outside the book are clamped."""
        assert service.update_progress(created_book.id, 10_000).value.current_page == 688
        assert service.update_progress(created_book.id, -4).value.current_page == 0

    def test_back_to_zero(self, service: BookService, created_book):
        """Test a Reading book at page 0 returns to To-Read."""
        service.update_progress(created_book.id, 10)
        result = service.update_progress(created_book.id, 0)
        assert result.value.status is BookStatus.TO_READ

    def test_missing_book(self, service: BookService):
        """Test editing a book that does not exist."""
        with pytest.raises(NotFoundError):
            service.update_progress("missing", 5)


class TestQueries:
    """Tests for listing and finding books."""

    def test_delete_book(self, service: BookService, created_book):
        """Test deleting a book."""
        assert service.delete_book(created_book.id)
        assert service.list_books() == []
        assert not service.delete_book(created_book.id)

    def test_find_by_id(self, service: BookService, multiple_books):
        """Test exact id lookup."""
        book = multiple_books[1]
        assert service.find_books(book.id) == [book]

    def test_find_by_title(self, service: BookService, multiple_books):
        """Test case-insensitive title search."""
        titles = [b.title for b in service.find_books("book t")]
        assert titles == ["Book Two", "Book Three"]

    def test_watch_shelf(self, service: BookService, created_book):
        """Test a live shelf reflects progress edits."""
        with service.watch(BookStatus.READING) as sub:
            assert sub.next_snapshot(timeout=1) == []
            service.update_progress(created_book.id, 5)
            assert [b.id for b in sub.next_snapshot(timeout=1)] == [created_book.id]
