"""Reading session history and chart statistics."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Callable, Iterable, Optional

from ..dates import ensure_aware, local_date, parse_iso, utc_now
from ..db.schemas import ReadingSessionRecord
from ..db.store import UserStore


class StatsPeriod(str, Enum):
    """Chart granularity."""

    DAYS = "days"  # last 7 days
    WEEKS = "weeks"  # last 4 rolling weeks
    MONTHS = "months"  # last 6 calendar months


@dataclass
class ChartPoint:
    """One bar of the reading-time chart."""

    label: str
    value: int  # seconds
    height_percent: int = 0
    full_label: Optional[str] = None


def _local_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min).astimezone()


def _month_start(year: int, month: int) -> datetime:
    # month may run outside 1..12
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return _local_midnight(date(year, month, 1))


def _sum_between(
    sessions: list[tuple[datetime, int]], start: datetime, end: datetime
) -> int:
    return sum(seconds for created, seconds in sessions if start <= created < end)


def chart_data(
    sessions: Iterable[ReadingSessionRecord],
    period: StatsPeriod,
    now: datetime,
) -> list[ChartPoint]:
    """Bucket session durations for the chart.

    Returns an empty list when there are no sessions at all. Heights are
    relative to the largest bucket.
    """
    timed = []
    for session in sessions:
        created = parse_iso(session.created_at)
        if created is not None:
            timed.append((created, session.duration_seconds or 0))
    if not timed:
        return []

    now = ensure_aware(now)
    points: list[ChartPoint] = []
    today = local_date(now)

    if period is StatsPeriod.DAYS:
        for i in range(6, -1, -1):
            day = today - timedelta(days=i)
            start = _local_midnight(day)
            end = _local_midnight(day + timedelta(days=1))
            points.append(
                ChartPoint(
                    label=day.strftime("%a")[0],
                    full_label=day.strftime("%d %b"),
                    value=_sum_between(timed, start, end),
                )
            )
    elif period is StatsPeriod.WEEKS:
        for i in range(3, -1, -1):
            end = now - timedelta(days=i * 7)
            start = end - timedelta(days=7)
            points.append(
                ChartPoint(
                    label=f"Wk {4 - i}",
                    full_label=f"{start:%d/%m} - {end:%d/%m}",
                    value=_sum_between(timed, start, end),
                )
            )
    else:
        for i in range(5, -1, -1):
            start = _month_start(today.year, today.month - i)
            end = _month_start(today.year, today.month - i + 1)
            points.append(
                ChartPoint(
                    label=start.strftime("%b")[0],
                    full_label=start.strftime("%B %Y"),
                    value=_sum_between(timed, start, end),
                )
            )

    max_value = max(max(p.value for p in points), 1)
    for point in points:
        point.height_percent = round(point.value / max_value * 100)
    return points


class SessionHistory:
    """Recent sessions and chart data for the stopwatch screen."""

    RECENT_LIMIT = 5
    HISTORY_MONTHS = 6

    def __init__(self, store: UserStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def recent(self, limit: int = RECENT_LIMIT) -> list[ReadingSessionRecord]:
        """Latest sessions, newest first."""
        return self.store.list_sessions(limit=limit, newest_first=True)

    def history_start(self) -> datetime:
        """Earliest session time the charts look at."""
        today = local_date(self.clock())
        return _month_start(today.year, today.month - self.HISTORY_MONTHS)

    def chart(self, period: StatsPeriod = StatsPeriod.DAYS) -> list[ChartPoint]:
        """Chart buckets over the last six months of sessions."""
        sessions = self.store.list_sessions(since=self.history_start())
        return chart_data(sessions, period, self.clock())
