"""Reading-session stopwatch.

Counts whole seconds while running, holds a wake lock, and on stop records
a reading session through the optimistic saver.
"""

import os
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog

from ..db.schemas import DeviceClass, ReadingSessionCreate, ReadingSessionRecord
from ..db.store import UserStore
from ..errors import NoBookSelectedError, NotFoundError, ValidationError
from ..saving import OptimisticSaver, SaveResult
from .wakelock import NullWakeLock, WakeLock

logger = structlog.get_logger(__name__)

UNKNOWN_TITLE = "Unknown"


class StopwatchState(str, Enum):
    """Stopwatch state."""

    IDLE = "idle"
    RUNNING = "running"


class StopOutcome(str, Enum):
    """What stopping the stopwatch did."""

    SAVED = "saved"
    DISCARDED = "discarded"
    NOT_RUNNING = "not_running"


@dataclass
class StopResult:
    """Result of stopping the stopwatch."""

    outcome: StopOutcome
    duration_seconds: int = 0
    save: Optional[SaveResult[ReadingSessionRecord]] = None


def detect_device_class() -> DeviceClass:
    """Guess whether we run on a phone."""
    if sys.platform in ("android", "ios") or "ANDROID_ROOT" in os.environ:
        return DeviceClass.MOBILE
    return DeviceClass.DESKTOP


def format_time(total_seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, rest = divmod(max(0, int(total_seconds)), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_time_short(total_seconds: int) -> str:
    """Format seconds as '1h 5m', '5m' or '30s'."""
    total_seconds = max(0, int(total_seconds))
    hours, rest = divmod(total_seconds, 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{total_seconds}s"


class Ticker:
    """Calls a function once per interval on a daemon thread."""

    def __init__(self, callback: Callable[[], None], interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="readtrack-ticker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.callback()


class Stopwatch:
    """Times a reading session for one selected book."""

    def __init__(
        self,
        store: UserStore,
        saver: OptimisticSaver,
        wake_lock: Optional[WakeLock] = None,
        min_seconds: int = 10,
        save_timeout: Optional[float] = None,
        device: Optional[DeviceClass] = None,
        auto_tick: bool = True,
        tick_interval: float = 1.0,
    ):
        """Initialize the stopwatch.

        Args:
            store: The user's document store
            saver: Optimistic saver for the session write
            wake_lock: Lock held while running (default: no-op lock)
            min_seconds: Sessions shorter than this prompt for discard
            save_timeout: Seconds to wait on the session write
            device: Device class recorded on sessions (default: detected)
            auto_tick: Run a background ticker while running
            tick_interval: Seconds between ticks
        """
        self.store = store
        self.saver = saver
        self.wake_lock = wake_lock or NullWakeLock()
        self.min_seconds = min_seconds
        self.save_timeout = save_timeout
        self.device = device or detect_device_class()

        self._lock = threading.Lock()
        self._elapsed = 0
        self._state = StopwatchState.IDLE
        self._book_id: Optional[str] = None
        self._book_title: Optional[str] = None
        self._ticker = Ticker(self.tick, tick_interval) if auto_tick else None

    @property
    def elapsed(self) -> int:
        """Whole seconds counted so far."""
        with self._lock:
            return self._elapsed

    @property
    def state(self) -> StopwatchState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is StopwatchState.RUNNING

    @property
    def book_id(self) -> Optional[str]:
        return self._book_id

    @property
    def book_title(self) -> Optional[str]:
        return self._book_title

    def select_book(self, book_id: Optional[str]) -> None:
        """Choose the book being read. Locked while running.

        Raises:
            ValidationError: If the stopwatch is running
            NotFoundError: If the book does not exist
        """
        if self.running:
            raise ValidationError("Stop the timer before switching books.")
        if not book_id:
            self._book_id = None
            self._book_title = None
            return

        book = self.store.get_book(book_id)
        if not book:
            raise NotFoundError("Book", book_id)
        self._book_id = book.id
        self._book_title = book.title or UNKNOWN_TITLE

    def start(self) -> None:
        """Start counting.

        Raises:
            NoBookSelectedError: If no book is selected
        """
        if self.running:
            return
        if not self._book_id:
            raise NoBookSelectedError()

        self._state = StopwatchState.RUNNING
        self.wake_lock.acquire()
        if self._ticker:
            self._ticker.start()
        logger.info("stopwatch_started", book_id=self._book_id)

    def tick(self) -> None:
        """Advance one second if running."""
        with self._lock:
            if self._state is StopwatchState.RUNNING:
                self._elapsed += 1

    def _halt(self) -> None:
        self._state = StopwatchState.IDLE
        if self._ticker:
            self._ticker.stop()
        self.wake_lock.release()

    def stop(self, confirm_discard: Callable[[int], bool] = lambda seconds: True) -> StopResult:
        """Stop counting and record the session.

        Sessions shorter than min_seconds ask confirm_discard first; when it
        returns True nothing is saved, otherwise the session is saved anyway.

        Args:
            confirm_discard: Called with the elapsed seconds of a short session

        Returns:
            StopResult

        Raises:
            PermissionDeniedError: If the store refuses the write (elapsed kept)
        """
        if not self.running:
            return StopResult(StopOutcome.NOT_RUNNING)

        # Count freezes and the wake lock goes before the prompt or the write
        self._halt()
        seconds = self.elapsed
        if seconds < self.min_seconds and confirm_discard(seconds):
            self._set_elapsed(0)
            logger.info("stopwatch_discarded", seconds=seconds)
            return StopResult(StopOutcome.DISCARDED, duration_seconds=seconds)

        data = ReadingSessionCreate(
            book_id=self._book_id,
            book_title=self._book_title or UNKNOWN_TITLE,
            duration_seconds=seconds,
            device=self.device,
        )
        result = self.saver.race(
            lambda: self.store.add_session(data),
            timeout=self.save_timeout,
            label="save_session",
        )
        self._set_elapsed(0)
        logger.info("stopwatch_saved", seconds=seconds, outcome=result.outcome.value)
        return StopResult(StopOutcome.SAVED, duration_seconds=seconds, save=result)

    def reset(self, confirm: Callable[[], bool] = lambda: True) -> bool:
        """Throw away the current count without saving.

        Returns:
            True if the count was reset
        """
        if not confirm():
            return False
        self._halt()
        self._set_elapsed(0)
        return True

    def close(self) -> None:
        """Stop timers and release the wake lock without saving."""
        self._halt()

    def _set_elapsed(self, value: int) -> None:
        with self._lock:
            self._elapsed = value
