"""Composing goal reminder notifications."""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from ..dates import FAR_FUTURE, days_until, parse_iso
from ..goals.progress import GoalProgress

TITLE_SINGLE = "Your current goal"
TITLE_PRIORITY = "Priority"

VIBRATION_PATTERN = (200, 100, 200)
ICON = "icons/icon-192x192.png"
BADGE = "/icon-192x192.png"
TAG = "goal-alert"


@dataclass
class Notification:
    """Payload handed to a notification channel."""

    title: str
    body: str
    vibrate: tuple[int, ...] = VIBRATION_PATTERN
    icon: str = ICON
    badge: str = BADGE
    tag: Optional[str] = TAG  # same tag replaces the previous alert
    data: dict = field(default_factory=dict)


def time_phrase(days: int) -> str:
    """Describe how far away a deadline is."""
    if days < 0:
        return f"was due {abs(days)} days ago"
    if days == 0:
        return "is due today"
    if days == 1:
        return "is due tomorrow"
    return f"is due in {days} days"


def pending_by_deadline(progress: Iterable[GoalProgress]) -> list[GoalProgress]:
    """Incomplete goals, earliest deadline first; goals without one go last."""
    pending = [p for p in progress if not p.is_complete]
    return sorted(pending, key=lambda p: parse_iso(p.goal.deadline) or FAR_FUTURE)


def compose_message(
    progress: Iterable[GoalProgress],
    today: date,
    tag: Optional[str] = TAG,
) -> Optional[Notification]:
    """Build the reminder for the most urgent incomplete goal.

    With a single incomplete goal the message is about that goal. With more
    than one, it flags the nearest deadline as the priority.

    Returns:
        Notification, or None when every goal is complete
    """
    pending = pending_by_deadline(progress)
    if not pending:
        return None

    target = pending[0]
    deadline = parse_iso(target.goal.deadline)
    days = days_until(deadline, today) if deadline else 0
    phrase = time_phrase(days)
    name = target.goal.name

    if len(pending) == 1:
        title = TITLE_SINGLE
        body = f'"{name}" {phrase}.'
    else:
        title = TITLE_PRIORITY
        body = f'"{name}" is the nearest of {len(pending)} goals and {phrase}.'

    return Notification(
        title=title,
        body=body,
        tag=tag,
        data={"goal_id": target.goal.id, "days_left": days},
    )
