"""Screen wake locks held while the stopwatch runs."""

import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class WakeLock(ABC):
    """Keeps the display awake while held."""

    @property
    @abstractmethod
    def held(self) -> bool:
        """Whether the lock is currently held."""

    @abstractmethod
    def acquire(self) -> None:
        """Take the lock. Failures are logged, never raised."""

    @abstractmethod
    def release(self) -> None:
        """Drop the lock if held."""


class NullWakeLock(WakeLock):
    """Wake lock for platforms without one. Only tracks state."""

    def __init__(self):
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        self._held = True

    def release(self) -> None:
        self._held = False


class SystemdWakeLock(WakeLock):
    """Holds a systemd-inhibit child process for the lifetime of the lock."""

    COMMAND = "systemd-inhibit"

    def __init__(self, why: str = "Reading session in progress"):
        self.why = why
        self._process: Optional[subprocess.Popen] = None

    @classmethod
    def available(cls) -> bool:
        return shutil.which(cls.COMMAND) is not None

    @property
    def held(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def acquire(self) -> None:
        if self.held:
            return
        try:
            self._process = subprocess.Popen(
                [
                    self.COMMAND,
                    "--what=idle:sleep",
                    "--who=readtrack",
                    f"--why={self.why}",
                    "--mode=block",
                    "sleep",
                    "infinity",
                ],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning("wake_lock_failed", error=str(e))
            self._process = None

    def release(self) -> None:
        if self._process is None:
            return
        process, self._process = self._process, None
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=2)
            except subprocess.TimeoutExpired:
                process.kill()


def default_wake_lock() -> WakeLock:
    """The best wake lock this platform offers."""
    if SystemdWakeLock.available():
        return SystemdWakeLock()
    return NullWakeLock()
