"""Application wiring.

An AppContext owns the database, the optimistic saver and the platform
services, and hands out per-user components. It is created once at startup
and passed explicitly to whatever needs it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog
from rich.console import Console

from .config import Config
from .dates import utc_now
from .db.store import Database, UserStore
from .errors import PermissionDeniedError
from .goals.manager import GoalManager
from .library.books import BookService
from .library.views import LibraryView
from .notifications.channels import NotificationChannel, default_channels
from .notifications.manager import NotificationManager
from .notifications.throttle import DailyThrottle
from .reading.history import SessionHistory
from .reading.stopwatch import Stopwatch
from .reading.wakelock import WakeLock, default_wake_lock
from .saving import OptimisticSaver

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """The signed-in user."""

    user_id: str


class AppContext:
    """Shared services for one running application."""

    def __init__(
        self,
        config: Config,
        user_id: Optional[str] = None,
        db: Optional[Database] = None,
        wake_lock: Optional[WakeLock] = None,
        channels: Optional[list[NotificationChannel]] = None,
        console: Optional[Console] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the application context.

        Args:
            config: Application configuration
            user_id: Signed-in user (default: config.user_id)
            db: Database to use (default: opened from config.db_path)
            wake_lock: Screen wake lock for the stopwatch
            channels: Notification channels
            console: Console for immediate notifications
            clock: Source of the current time
        """
        self.config = config
        self.clock = clock
        self.db = db or Database(str(config.db_path))
        self.db.create_tables()
        self.saver = OptimisticSaver(timeout=config.save_timeout)
        self.wake_lock = wake_lock or default_wake_lock()
        self.channels = channels if channels is not None else default_channels(console)
        self.throttle = DailyThrottle(config.state_path)

        uid = user_id or config.user_id
        self.auth: Optional[AuthContext] = AuthContext(uid) if uid else None
        self._store: Optional[UserStore] = None

    @property
    def store(self) -> UserStore:
        """Store of the signed-in user.

        Raises:
            PermissionDeniedError: If nobody is signed in
        """
        if self._store is None:
            self._store = self.db.for_user(self.auth.user_id if self.auth else None)
        return self._store

    @property
    def user_id(self) -> str:
        if not self.auth:
            raise PermissionDeniedError("Sign in to access your library.")
        return self.auth.user_id

    def books(self) -> BookService:
        return BookService(
            self.store,
            self.saver,
            save_timeout=self.config.book_save_timeout,
            clock=self.clock,
        )

    def library(self) -> LibraryView:
        return LibraryView(self.store, clock=self.clock)

    def stopwatch(self, auto_tick: bool = True) -> Stopwatch:
        return Stopwatch(
            self.store,
            self.saver,
            wake_lock=self.wake_lock,
            min_seconds=self.config.min_session_seconds,
            auto_tick=auto_tick,
        )

    def history(self) -> SessionHistory:
        return SessionHistory(self.store, clock=self.clock)

    def goals(self) -> GoalManager:
        return GoalManager(self.store, self.saver, clock=self.clock)

    def notifier(self, demo: Optional[bool] = None) -> NotificationManager:
        """Notification manager for the signed-in user.

        Args:
            demo: Override the configured demo mode
        """
        return NotificationManager(
            self.goals(),
            self.user_id,
            self.throttle,
            self.channels,
            demo=self.config.notify_demo if demo is None else demo,
            demo_interval=self.config.notify_demo_interval,
            delay=self.config.notify_delay,
            poll_interval=self.config.notify_poll_interval,
            clock=self.clock,
        )

    def close(self) -> None:
        """Release the wake lock, stop live queries and close the database."""
        self.wake_lock.release()
        self.saver.shutdown(wait=False)
        self.db.close()
        logger.debug("app_closed")

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
