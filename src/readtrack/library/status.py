"""Book status derivation from page progress."""

from dataclasses import dataclass

from ..db.schemas import BookStatus


@dataclass(frozen=True)
class StatusChange:
    """New status for a progress edit."""

    status: BookStatus
    stamp_completion: bool = False  # set finishedAt now


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp a requested page into [0, total_pages]."""
    return min(max(total_pages, 0), max(0, page))


def derive_status(previous: BookStatus, total_pages: int, new_page: int) -> StatusChange:
    """Derive a book's status after its current page changes.

    Rules, first match wins:
      1. new_page >= total_pages: Read, stamping completion only when the
         book was not already Read.
      2. To-Read with 0 < new_page < total_pages: Reading.
      3. new_page == 0 while Reading: back to To-Read.
      4. Otherwise the status is unchanged.

    Args:
        previous: Status before the edit
        total_pages: Page count of the book (treated as 1 if missing)
        new_page: Page after the edit, already clamped by the caller

    Returns:
        StatusChange with the new status and whether to stamp finishedAt
    """
    total = total_pages or 1

    if new_page >= total:
        return StatusChange(BookStatus.READ, stamp_completion=previous is not BookStatus.READ)
    if previous is BookStatus.TO_READ and 0 < new_page < total:
        return StatusChange(BookStatus.READING)
    if new_page == 0 and previous is BookStatus.READING:
        return StatusChange(BookStatus.TO_READ)
    return StatusChange(previous)
