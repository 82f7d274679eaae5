"""Goal progress arithmetic.

Automated goals (Books, Pages, Hours) are recomputed from book and session
records whose relevant date falls inside the goal's [createdAt, deadline]
window. Chapters goals use the stored manual counter.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from ..dates import EPOCH, FAR_FUTURE, days_left, parse_iso
from ..db.schemas import BookRecord, BookStatus, GoalRecord, GoalUnit, ReadingSessionRecord

# Days left at or below which a goal is flagged as close
NEAR_DAYS = 3


def goal_window(goal: GoalRecord) -> tuple[datetime, datetime]:
    """Inclusive window a goal counts activity in."""
    start = parse_iso(goal.created_at) or EPOCH
    end = parse_iso(goal.deadline) or FAR_FUTURE
    return start, end


def _finished_within(book: BookRecord, start: datetime, end: datetime) -> bool:
    if book.status is not BookStatus.READ:
        return False
    finished = parse_iso(book.finished_at)
    return finished is not None and start <= finished <= end


def compute_progress(
    goal: GoalRecord,
    books: Iterable[BookRecord],
    sessions: Iterable[ReadingSessionRecord],
) -> float:
    """Current progress of a goal in its own unit.

    Books: books finished in the window.
    Pages: pages of books being read now plus full page counts of books
        finished in the window.
    Hours: session time in the window, in hours to two decimals.
    Chapters: the manual counter.
    """
    if goal.unit is GoalUnit.CHAPTERS:
        return goal.current or 0

    start, end = goal_window(goal)

    if goal.unit is GoalUnit.BOOKS:
        return sum(1 for b in books if _finished_within(b, start, end))

    if goal.unit is GoalUnit.PAGES:
        books = list(books)
        reading = sum(b.current_page or 0 for b in books if b.status is BookStatus.READING)
        finished = sum(b.total_pages or 0 for b in books if _finished_within(b, start, end))
        return reading + finished

    total_seconds = 0
    for session in sessions:
        created = parse_iso(session.created_at)
        if created is not None and start <= created <= end:
            total_seconds += session.duration_seconds or 0
    return round(total_seconds / 3600, 2)


@dataclass
class GoalProgress:
    """A goal together with its displayed progress."""

    goal: GoalRecord
    current: float

    @property
    def percent(self) -> float:
        """Progress percentage clamped to [0, 100]."""
        if not self.goal.total or self.goal.total <= 0:
            return 0.0
        return min(100.0, max(0.0, round((self.current / self.goal.total) * 100, 1)))

    @property
    def remaining(self) -> float:
        return max(0, round(self.goal.total - self.current, 2))

    @property
    def is_complete(self) -> bool:
        return self.current >= self.goal.total


def evaluate(
    goal: GoalRecord,
    books: Iterable[BookRecord],
    sessions: Iterable[ReadingSessionRecord],
) -> GoalProgress:
    """Pair a goal with its computed progress."""
    return GoalProgress(goal=goal, current=compute_progress(goal, books, sessions))


class GoalBadge(str, Enum):
    """Urgency badge of a goal."""

    COMPLETED = "completed"
    OVERDUE = "overdue"
    NEAR = "near"
    ON_TRACK = "on_track"


@dataclass
class GoalStatus:
    """Badge, days left and display text."""

    badge: GoalBadge
    days_left: Optional[int]
    text: str


def goal_status(goal: GoalRecord, completed: bool, now: datetime) -> GoalStatus:
    """Urgency of a goal; partial days count as a whole day left."""
    deadline = parse_iso(goal.deadline) or now
    left = days_left(deadline, now)

    if completed:
        return GoalStatus(GoalBadge.COMPLETED, left, "Completed!")
    if left < 0:
        return GoalStatus(GoalBadge.OVERDUE, left, f"Overdue by {abs(left)} days")
    if left <= NEAR_DAYS:
        return GoalStatus(GoalBadge.NEAR, left, f"{left} days left (soon!)")
    return GoalStatus(GoalBadge.ON_TRACK, left, f"{left} days left")
