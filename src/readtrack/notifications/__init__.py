"""Goal reminder notifications."""

from .channels import (
    ConsoleChannel,
    DesktopChannel,
    NotificationChannel,
    default_channels,
    dispatch,
)
from .manager import CheckOutcome, CheckResult, NotificationManager, NotificationPermission
from .message import Notification, compose_message, pending_by_deadline, time_phrase
from .throttle import DailyThrottle, throttle_key

__all__ = [
    "ConsoleChannel",
    "DesktopChannel",
    "NotificationChannel",
    "default_channels",
    "dispatch",
    "CheckOutcome",
    "CheckResult",
    "NotificationManager",
    "NotificationPermission",
    "Notification",
    "compose_message",
    "pending_by_deadline",
    "time_phrase",
    "DailyThrottle",
    "throttle_key",
]
