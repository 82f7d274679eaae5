"""Once-a-day throttle for goal reminders.

Stores the date of the last reminder per user in a small JSON key/value
file, under the key ``last_notification_check_<user id>``.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


def throttle_key(user_id: str) -> str:
    return f"last_notification_check_{user_id}"


class DailyThrottle:
    """Remembers whether a user was already notified today."""

    def __init__(self, state_file: Path):
        """Initialize throttle.

        Args:
            state_file: JSON file holding the local key/value state
        """
        self.state_file = Path(state_file)

    def _load(self) -> dict:
        if not self.state_file.exists():
            return {}
        try:
            with open(self.state_file, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            logger.warning("throttle_state_unreadable", path=str(self.state_file))
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> bool:
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.state_file, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning("throttle_state_unwritable", path=str(self.state_file), error=str(e))
            return False
        return True

    def last_sent(self, user_id: str) -> Optional[str]:
        """Stored date string of the last reminder, if any."""
        return self._load().get(throttle_key(user_id))

    def sent_today(self, user_id: str, today: date) -> bool:
        return self.last_sent(user_id) == today.isoformat()

    def mark_sent(self, user_id: str, today: date) -> bool:
        """Record today's reminder. Returns False if the state file could not be written."""
        data = self._load()
        data[throttle_key(user_id)] = today.isoformat()
        return self._save(data)
