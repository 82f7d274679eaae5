"""Reading goals with deadlines."""

from .manager import GoalManager
from .progress import (
    GoalBadge,
    GoalProgress,
    GoalStatus,
    compute_progress,
    evaluate,
    goal_status,
    goal_window,
)

__all__ = [
    "GoalManager",
    "GoalBadge",
    "GoalProgress",
    "GoalStatus",
    "compute_progress",
    "evaluate",
    "goal_status",
    "goal_window",
]
