"""Library view: shelves by status and reading time totals."""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Iterator

from ..dates import parse_iso, start_of_day, start_of_week, utc_now
from ..db.schemas import BookRecord, BookStatus, ReadingSessionRecord
from ..db.store import UserStore

# Shelf order shown in the library
TABS = (BookStatus.READING, BookStatus.TO_READ, BookStatus.READ)


@dataclass
class ReadingTotals:
    """Seconds read today and this week (weeks start on Sunday)."""

    today_seconds: int = 0
    week_seconds: int = 0


def reading_totals(sessions: Iterable[ReadingSessionRecord], now: datetime) -> ReadingTotals:
    """Sum session durations into today and this-week buckets.

    Sessions without a timestamp are ignored.
    """
    day_start = start_of_day(now)
    week_start = start_of_week(now)
    totals = ReadingTotals()

    for session in sessions:
        created = parse_iso(session.created_at)
        if created is None or created < week_start:
            continue
        seconds = session.duration_seconds or 0
        totals.week_seconds += seconds
        if created >= day_start:
            totals.today_seconds += seconds

    return totals


class LibraryView:
    """Books grouped by shelf plus reading time metrics."""

    def __init__(self, store: UserStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def shelf(self, status: BookStatus) -> list[BookRecord]:
        """Books on one shelf."""
        return self.store.list_books(status)

    def shelves(self) -> dict[BookStatus, list[BookRecord]]:
        """All shelves in display order."""
        return {status: self.shelf(status) for status in TABS}

    def totals(self) -> ReadingTotals:
        """Today and this-week reading time."""
        now = self.clock()
        sessions = self.store.list_sessions(since=start_of_week(now))
        return reading_totals(sessions, now)

    def watch_totals(self) -> Iterator[ReadingTotals]:
        """Recompute totals each time the sessions collection changes.

        The week boundary is fixed when the generator starts. Closing the
        generator unsubscribes.
        """
        now = self.clock()
        subscription = self.store.watch_sessions(since=start_of_week(now))
        try:
            for sessions in subscription:
                yield reading_totals(sessions, self.clock())
        finally:
            subscription.close()
