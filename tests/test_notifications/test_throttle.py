"""Tests for the daily notification throttle."""

import json
from datetime import date
from pathlib import Path

from readtrack.notifications.throttle import DailyThrottle, throttle_key


class TestDailyThrottle:
    """Tests for DailyThrottle."""

    def test_key(self):
        """Test the stored key name."""
        assert throttle_key("abc") == "last_notification_check_abc"

    def test_fresh_state(self, tmp_path: Path):
        """Test nothing is recorded initially."""
        throttle = DailyThrottle(tmp_path / "state.json")
        assert throttle.last_sent("u") is None
        assert not throttle.sent_today("u", date(2025, 6, 18))

    def test_mark_sent(self, tmp_path: Path):
        """Test recording today's reminder."""
        path = tmp_path / "nested" / "state.json"
        throttle = DailyThrottle(path)
        throttle.mark_sent("u", date(2025, 6, 18))

        assert throttle.sent_today("u", date(2025, 6, 18))
        assert not throttle.sent_today("u", date(2025, 6, 19))
        assert not throttle.sent_today("other", date(2025, 6, 18))
        assert json.loads(path.read_text()) == {"last_notification_check_u": "2025-06-18"}

    def test_corrupt_state_ignored(self, tmp_path: Path):
        """Test an unreadable state file counts as empty."""
        path = tmp_path / "state.json"
        path.write_text("{not json")
        throttle = DailyThrottle(path)

        assert throttle.last_sent("u") is None
        throttle.mark_sent("u", date(2025, 6, 18))
        assert throttle.sent_today("u", date(2025, 6, 18))

    def test_unwritable_state(self, tmp_path: Path):
        """Test a state path that cannot be written is reported, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        throttle = DailyThrottle(blocker / "state.json")

        assert throttle.mark_sent("u", date(2025, 6, 18)) is False
        assert throttle.last_sent("u") is None
