"""Date helpers shared by the views.

Timestamps are stored as ISO-8601 UTC strings. Calendar arithmetic (today,
this week, days until a deadline) happens on local dates.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

# Stand-ins for missing window bounds
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
FAR_FUTURE = datetime(2100, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current aware UTC time."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as local time."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


def to_iso(value: datetime) -> str:
    """Serialize for storage."""
    return ensure_aware(value).astimezone(timezone.utc).isoformat()


def parse_iso(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a stored timestamp; None and empty strings stay None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(value))


def local_date(value: datetime) -> date:
    """Calendar date of a timestamp in local time."""
    return ensure_aware(value).astimezone().date()


def start_of_day(now: datetime) -> datetime:
    """Local midnight of the day containing now."""
    day = local_date(now)
    return datetime.combine(day, time.min).astimezone()


def start_of_week(now: datetime) -> datetime:
    """Local midnight of the most recent Sunday."""
    day = local_date(now)
    # date.weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (day.weekday() + 1) % 7
    return datetime.combine(day - timedelta(days=days_since_sunday), time.min).astimezone()


def end_of_day(day: date) -> datetime:
    """Local 23:59:59 on the given day."""
    return datetime.combine(day, time(23, 59, 59)).astimezone()


def days_until(deadline: datetime, today: date) -> int:
    """Whole days from today to the deadline's date; negative when past."""
    return (local_date(deadline) - today).days


def days_left(deadline: datetime, now: datetime) -> int:
    """Days remaining rounded up, counting partial days as whole."""
    remaining = ensure_aware(deadline) - ensure_aware(now)
    return math.ceil(remaining.total_seconds() / 86400)
