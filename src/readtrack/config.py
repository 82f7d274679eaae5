"""Configuration management for readtrack.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_HOME = Path.home() / ".readtrack"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Application configuration."""

    # Storage
    db_path: Path
    state_path: Path  # local key/value state (notification throttle)

    # Identity
    user_id: Optional[str]

    # Optimistic saves
    save_timeout: float  # seconds
    book_save_timeout: float  # seconds

    # Stopwatch
    min_session_seconds: int

    # Notifications
    notify_demo: bool
    notify_demo_interval: float  # seconds
    notify_delay: float  # seconds before the first check
    notify_poll_interval: float  # seconds

    # Logging
    log_level: str
    log_json: bool

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path = Path(
            os.environ.get("READTRACK_DB_PATH", str(DEFAULT_HOME / "readtrack.db"))
        ).expanduser()
        state_path = Path(
            os.environ.get("READTRACK_STATE_PATH", str(DEFAULT_HOME / "state.json"))
        ).expanduser()

        return cls(
            db_path=db_path,
            state_path=state_path,
            user_id=os.environ.get("READTRACK_USER_ID") or None,
            save_timeout=float(os.environ.get("READTRACK_SAVE_TIMEOUT", "2.0")),
            book_save_timeout=float(os.environ.get("READTRACK_BOOK_SAVE_TIMEOUT", "3.0")),
            min_session_seconds=int(os.environ.get("READTRACK_MIN_SESSION_SECONDS", "10")),
            notify_demo=_env_bool("READTRACK_NOTIFY_DEMO", False),
            notify_demo_interval=float(
                os.environ.get("READTRACK_NOTIFY_DEMO_INTERVAL", "10")
            ),
            notify_delay=float(os.environ.get("READTRACK_NOTIFY_DELAY", "3")),
            notify_poll_interval=float(
                os.environ.get("READTRACK_NOTIFY_POLL_INTERVAL", "3600")
            ),
            log_level=os.environ.get("READTRACK_LOG_LEVEL", "WARNING").upper(),
            log_json=_env_bool("READTRACK_LOG_JSON", False),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.save_timeout <= 0 or self.book_save_timeout <= 0:
            errors.append("Save timeouts must be positive")
        if self.min_session_seconds < 0:
            errors.append("Minimum session length cannot be negative")
        if self.notify_poll_interval <= 0 or self.notify_demo_interval <= 0:
            errors.append("Notification intervals must be positive")

        return errors

    def has_user(self) -> bool:
        """Check if a default user identity is configured."""
        return bool(self.user_id)
