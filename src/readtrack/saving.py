"""Optimistic-offline saves.

A save races the write against a timeout. Whatever happens first, the caller
carries on: a write still pending after the timeout is assumed to be queued,
and a failed write is logged and left to be retried. Only surfaced errors
(permission problems by default) reach the caller.

The outcome keeps "confirmed", "timed out" and "failed" apart so logs can
tell them apart, even though the UI treats them the same.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

import structlog

from .errors import PermissionDeniedError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SaveOutcome(str, Enum):
    """How a save ended."""

    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"  # assumed queued
    FAILED = "failed"  # assumed retried


@dataclass
class SaveResult(Generic[T]):
    """Result of an optimistic save."""

    outcome: SaveOutcome
    value: Optional[T] = None
    error: Optional[BaseException] = None
    pending: Optional[Future] = None

    @property
    def confirmed(self) -> bool:
        return self.outcome is SaveOutcome.CONFIRMED


class OptimisticSaver:
    """Runs writes on worker threads and stops waiting after a timeout."""

    def __init__(
        self,
        timeout: float = 2.0,
        surface: tuple[type[BaseException], ...] = (PermissionDeniedError,),
        max_workers: int = 4,
    ):
        """Initialize the saver.

        Args:
            timeout: Default seconds to wait for a write
            surface: Exception types re-raised to the caller
            max_workers: Size of the worker pool
        """
        self.timeout = timeout
        self.surface = surface
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="readtrack-save"
        )

    def race(
        self,
        operation: Callable[[], T],
        timeout: Optional[float] = None,
        label: str = "save",
    ) -> SaveResult[T]:
        """Run operation, waiting at most timeout seconds.

        Args:
            operation: The write to perform
            timeout: Seconds to wait (default: the saver's timeout)
            label: Name used in log events

        Returns:
            SaveResult describing how the race ended

        Raises:
            Any exception type listed in surface
        """
        wait = self.timeout if timeout is None else timeout
        future: Future = self._executor.submit(operation)

        try:
            value = future.result(timeout=wait)
        except FutureTimeoutError:
            logger.info("save_timed_out", label=label, timeout=wait)
            future.add_done_callback(lambda f: _log_late(f, label))
            return SaveResult(SaveOutcome.TIMED_OUT, pending=future)
        except self.surface:
            raise
        except Exception as e:
            logger.warning("save_failed", label=label, error=str(e), error_type=type(e).__name__)
            return SaveResult(SaveOutcome.FAILED, error=e)

        return SaveResult(SaveOutcome.CONFIRMED, value=value)

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting work. In-flight writes are never cancelled."""
        self._executor.shutdown(wait=wait)


def _log_late(future: Future, label: str) -> None:
    error: Any = future.exception()
    if error is None:
        logger.info("save_completed_late", label=label)
    else:
        logger.warning("save_failed_late", label=label, error=str(error))
