"""Shelves, page progress and the book-add form."""

from .books import BookService
from .status import StatusChange, clamp_page, derive_status
from .views import TABS, LibraryView, ReadingTotals, reading_totals

__all__ = [
    "BookService",
    "StatusChange",
    "clamp_page",
    "derive_status",
    "TABS",
    "LibraryView",
    "ReadingTotals",
    "reading_totals",
]
