"""Reading-session timing and history."""

from .history import ChartPoint, SessionHistory, StatsPeriod, chart_data
from .stopwatch import (
    StopOutcome,
    StopResult,
    Stopwatch,
    StopwatchState,
    Ticker,
    detect_device_class,
    format_time,
    format_time_short,
)
from .wakelock import NullWakeLock, SystemdWakeLock, WakeLock, default_wake_lock

__all__ = [
    "ChartPoint",
    "SessionHistory",
    "StatsPeriod",
    "chart_data",
    "StopOutcome",
    "StopResult",
    "Stopwatch",
    "StopwatchState",
    "Ticker",
    "detect_device_class",
    "format_time",
    "format_time_short",
    "NullWakeLock",
    "SystemdWakeLock",
    "WakeLock",
    "default_wake_lock",
]
