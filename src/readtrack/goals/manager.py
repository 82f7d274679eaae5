"""Goal management: creating, deleting, manual progress and listing."""

from datetime import date, datetime
from typing import Callable, Iterator, Optional, Union

import structlog

from ..dates import end_of_day, utc_now
from ..db.schemas import GoalCreate, GoalRecord, GoalUnit
from ..db.store import BOOKS, GOALS, SESSIONS, UserStore
from ..errors import NotFoundError, ValidationError
from ..saving import OptimisticSaver, SaveResult
from .progress import GoalProgress, evaluate

logger = structlog.get_logger(__name__)


class GoalManager:
    """Manages a user's reading goals."""

    def __init__(
        self,
        store: UserStore,
        saver: OptimisticSaver,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize goal manager.

        Args:
            store: The user's document store
            saver: Optimistic saver for writes
            clock: Source of the current time
        """
        self.store = store
        self.saver = saver
        self.clock = clock

    def create_goal(
        self,
        name: str,
        unit: GoalUnit,
        deadline: Optional[date],
        quantity: Union[int, float, str, None] = None,
        hours: Union[int, float, str] = 0,
        minutes: Union[int, float, str] = 0,
    ) -> SaveResult[GoalRecord]:
        """Create a goal ending at 23:59:59 on the deadline day.

        Args:
            name: Goal name
            unit: What the goal measures
            deadline: Last day of the goal
            quantity: Target for Books, Pages and Chapters goals
            hours: Target hours for Hours goals
            minutes: Extra target minutes for Hours goals

        Returns:
            SaveResult of the write

        Raises:
            ValidationError: If the name or deadline is missing, or the
                target is not a positive number
        """
        name = (name or "").strip()
        if not name or deadline is None:
            raise ValidationError("Name and deadline are required.")

        try:
            if unit is GoalUnit.HOURS:
                total = float(hours or 0) + float(minutes or 0) / 60
            else:
                total = float(quantity) if quantity not in (None, "") else 0.0
        except (TypeError, ValueError):
            raise ValidationError("Target must be a number.") from None

        if total <= 0:
            raise ValidationError("Target must be greater than 0.")

        data = GoalCreate(name=name, unit=unit, total=total, deadline=end_of_day(deadline))
        created_at = self.clock()
        result = self.saver.race(
            lambda: self.store.create_goal(data, created_at=created_at), label="create_goal"
        )
        logger.info("goal_created", name=name, unit=unit.value, outcome=result.outcome.value)
        return result

    def get_goal(self, goal_id: str) -> GoalRecord:
        """Get a goal or raise NotFoundError."""
        goal = self.store.get_goal(goal_id)
        if not goal:
            raise NotFoundError("Goal", goal_id)
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        """Delete a goal."""
        return self.store.delete_goal(goal_id)

    def adjust(self, goal_id: str, delta: float) -> SaveResult[GoalRecord]:
        """Move the manual counter of a Chapters goal, never below 0.

        Raises:
            NotFoundError: If the goal does not exist
            ValidationError: If the goal's progress is computed automatically
        """
        goal = self.get_goal(goal_id)
        if goal.unit.is_automated:
            raise ValidationError(f"Progress of {goal.unit.name.lower()} goals is computed automatically.")

        new_current = max(0, (goal.current or 0) + delta)
        return self.saver.race(
            lambda: self.store.set_goal_current(goal_id, new_current),
            label="adjust_goal",
        )

    def increment(self, goal_id: str) -> SaveResult[GoalRecord]:
        return self.adjust(goal_id, 1)

    def decrement(self, goal_id: str) -> SaveResult[GoalRecord]:
        return self.adjust(goal_id, -1)

    def progress(self) -> list[GoalProgress]:
        """All goals with their displayed progress, newest first."""
        goals = self.store.list_goals()
        if not goals:
            return []
        books = self.store.list_books()
        sessions = self.store.list_sessions()
        return [evaluate(goal, books, sessions) for goal in goals]

    def watch(self) -> Iterator[list[GoalProgress]]:
        """Recompute goal progress whenever goals, books or sessions change.

        Closing the generator unsubscribes.
        """
        subscription = self.store.watch([GOALS, BOOKS, SESSIONS], self.progress)
        try:
            yield from subscription
        finally:
            subscription.close()
