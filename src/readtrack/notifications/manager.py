"""Goal reminder scheduling.

Checks the user's goals, picks the incomplete goal with the nearest deadline
and sends one reminder a day. Demo mode re-checks on a short interval and
ignores the daily throttle, for trying the feature out by hand.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from ..dates import local_date, utc_now
from ..errors import ReadTrackError
from ..goals.manager import GoalManager
from .channels import NotificationChannel, dispatch
from .message import TAG, Notification, compose_message
from .throttle import DailyThrottle

logger = structlog.get_logger(__name__)


class NotificationPermission(str, Enum):
    """Whether the user allowed reminders."""

    DEFAULT = "default"  # not asked yet
    GRANTED = "granted"
    DENIED = "denied"


class CheckOutcome(str, Enum):
    """What a reminder check did."""

    SENT = "sent"
    NO_PERMISSION = "no_permission"
    THROTTLED = "throttled"
    NOTHING_PENDING = "nothing_pending"
    UNDELIVERED = "undelivered"
    ERROR = "error"


@dataclass
class CheckResult:
    """Result of one reminder check."""

    outcome: CheckOutcome
    notification: Optional[Notification] = None
    channel: Optional[str] = None


class NotificationManager:
    """Sends goal reminders for one user."""

    def __init__(
        self,
        goals: GoalManager,
        user_id: str,
        throttle: DailyThrottle,
        channels: Iterable[NotificationChannel],
        demo: bool = False,
        demo_interval: float = 10.0,
        delay: float = 3.0,
        poll_interval: float = 3600.0,
        permission: NotificationPermission = NotificationPermission.DEFAULT,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize notification manager.

        Args:
            goals: Goal manager of the user
            user_id: Identity the throttle is keyed by
            throttle: Daily throttle state
            channels: Delivery channels, background ones are preferred
            demo: Re-check every demo_interval seconds, ignoring the throttle
            demo_interval: Seconds between demo checks
            delay: Seconds before the first scheduled check
            poll_interval: Seconds between scheduled checks
            permission: Initial permission state
            clock: Source of the current time
        """
        self.goals = goals
        self.user_id = user_id
        self.throttle = throttle
        self.channels = list(channels)
        self.demo = demo
        self.demo_interval = demo_interval
        self.delay = delay
        self.poll_interval = poll_interval
        self.permission = permission
        self.clock = clock

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def request_permission(self) -> NotificationPermission:
        """Grant permission when some channel can deliver, deny otherwise."""
        if any(channel.available() for channel in self.channels):
            self.permission = NotificationPermission.GRANTED
        else:
            self.permission = NotificationPermission.DENIED
        logger.info("notification_permission", permission=self.permission.value)
        return self.permission

    def run_check(self, manual: bool = False) -> CheckResult:
        """Check goals and send a reminder if one is due.

        Args:
            manual: Triggered by the user; bypasses the daily throttle

        Returns:
            CheckResult
        """
        if self.permission is not NotificationPermission.GRANTED:
            logger.info("notification_check_skipped", reason="permission")
            return CheckResult(CheckOutcome.NO_PERMISSION)

        today = local_date(self.clock())
        throttled = not self.demo and not manual
        if throttled and self.throttle.sent_today(self.user_id, today):
            logger.debug("notification_check_skipped", reason="already_notified")
            return CheckResult(CheckOutcome.THROTTLED)

        try:
            progress = self.goals.progress()
        except (ReadTrackError, SQLAlchemyError) as e:
            logger.error("notification_check_failed", error=str(e))
            return CheckResult(CheckOutcome.ERROR)

        notification = compose_message(progress, today, tag=None if self.demo else TAG)
        if notification is None:
            return CheckResult(CheckOutcome.NOTHING_PENDING)

        channel = dispatch(notification, self.channels)
        if channel is None:
            return CheckResult(CheckOutcome.UNDELIVERED, notification=notification)

        if throttled:
            self.throttle.mark_sent(self.user_id, today)
        return CheckResult(CheckOutcome.SENT, notification=notification, channel=channel.name)

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start checking in the background."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="readtrack-notifications", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the background checks."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)

    def _run(self) -> None:
        first_wait = self.demo_interval if self.demo else self.delay
        interval = self.demo_interval if self.demo else self.poll_interval
        wait = first_wait
        while not self._stop.wait(wait):
            try:
                self.run_check(manual=False)
            except Exception:
                logger.exception("notification_check_crashed")
            wait = interval

    def __enter__(self) -> "NotificationManager":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
