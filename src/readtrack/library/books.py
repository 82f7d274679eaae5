"""Book list operations: adding, deleting and editing page progress."""

from datetime import datetime
from typing import Callable, Optional, Union

import structlog

from ..dates import utc_now
from ..db.live import Subscription
from ..db.schemas import BookCreate, BookRecord, BookStatus
from ..db.store import UserStore
from ..errors import NotFoundError, ValidationError
from ..saving import OptimisticSaver, SaveResult
from .status import clamp_page, derive_status

logger = structlog.get_logger(__name__)


class BookService:
    """Manages the books on a user's shelf."""

    def __init__(
        self,
        store: UserStore,
        saver: OptimisticSaver,
        save_timeout: float = 3.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize book service.

        Args:
            store: The user's document store
            saver: Optimistic saver for writes
            save_timeout: Seconds to wait on a new book before moving on
            clock: Source of the current time
        """
        self.store = store
        self.saver = saver
        self.save_timeout = save_timeout
        self.clock = clock

    def add_book(
        self,
        title: str,
        author: str,
        total_pages: Union[str, int, None],
        status: BookStatus = BookStatus.TO_READ,
    ) -> SaveResult[BookRecord]:
        """Validate form input and create the book.

        The write is optimistic: a slow or failed save still returns so the
        form can close. Permission errors propagate.

        Args:
            title: Book title
            author: Author name
            total_pages: Page count as typed (string or int)
            status: Initial shelf

        Returns:
            SaveResult of the write

        Raises:
            ValidationError: If a field is missing or the page count is invalid
            PermissionDeniedError: If the store refuses the write
        """
        title = (title or "").strip()
        author = (author or "").strip()
        if not title or not author or total_pages in (None, ""):
            raise ValidationError("All required fields must be filled in.")

        try:
            pages = int(str(total_pages).strip())
        except ValueError:
            raise ValidationError("Page count must be a valid number.") from None
        if pages <= 0:
            raise ValidationError("Page count must be a valid number.")

        data = BookCreate(title=title, author=author, total_pages=pages, status=status)
        created_at = self.clock()
        result = self.saver.race(
            lambda: self.store.create_book(data, created_at=created_at),
            timeout=self.save_timeout,
            label="create_book",
        )
        logger.info("book_added", title=title, outcome=result.outcome.value)
        return result

    def delete_book(self, book_id: str) -> bool:
        """Delete a book and its progress. Sessions logged for it remain."""
        deleted = self.store.delete_book(book_id)
        if not deleted:
            logger.info("book_delete_missing", book_id=book_id)
        return deleted

    def update_progress(self, book_id: str, page: int) -> SaveResult[BookRecord]:
        """Set the current page and move the book between shelves.

        The page is clamped to [0, totalPages]. finishedAt is stamped only on
        the first move into Read.

        Raises:
            NotFoundError: If the book does not exist
        """
        book = self.store.get_book(book_id)
        if not book:
            raise NotFoundError("Book", book_id)

        new_page = clamp_page(page, book.total_pages)
        change = derive_status(book.status, book.total_pages, new_page)
        finished_at: Optional[datetime] = self.clock() if change.stamp_completion else None

        if change.status is not book.status:
            logger.info(
                "book_status_changed",
                book_id=book_id,
                previous=book.status.value,
                status=change.status.value,
            )

        return self.saver.race(
            lambda: self.store.update_book(
                book_id,
                current_page=new_page,
                status=change.status,
                finished_at=finished_at,
            ),
            label="update_progress",
        )

    def list_books(self, status: Optional[BookStatus] = None) -> list[BookRecord]:
        """Books on one shelf, or all books."""
        return self.store.list_books(status)

    def find_books(self, query: str) -> list[BookRecord]:
        """Books whose id matches exactly or whose title contains query."""
        exact = self.store.get_book(query)
        if exact:
            return [exact]
        needle = query.strip().lower()
        return [b for b in self.store.list_books() if needle in b.title.lower()]

    def watch(self, status: Optional[BookStatus] = None) -> Subscription[list[BookRecord]]:
        """Live list of books on one shelf."""
        return self.store.watch_books(status)
