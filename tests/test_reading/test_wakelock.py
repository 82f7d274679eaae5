"""Tests for wake locks."""

from unittest.mock import MagicMock, patch

from readtrack.reading.wakelock import NullWakeLock, SystemdWakeLock, default_wake_lock


class TestNullWakeLock:
    """Tests for NullWakeLock."""

    def test_acquire_release(self):
        """Test the lock tracks its own state."""
        lock = NullWakeLock()
        lock.acquire()
        assert lock.held
        lock.release()
        assert not lock.held


class TestSystemdWakeLock:
    """Tests for SystemdWakeLock."""

    @patch("readtrack.reading.wakelock.subprocess.Popen")
    def test_acquire_spawns_inhibitor(self, mock_popen):
        """Test acquiring starts systemd-inhibit."""
        process = MagicMock()
        process.poll.return_value = None
        mock_popen.return_value = process

        lock = SystemdWakeLock()
        lock.acquire()

        assert lock.held
        args = mock_popen.call_args[0][0]
        assert args[0] == "systemd-inhibit"
        assert "--what=idle:sleep" in args

        lock.release()
        process.terminate.assert_called_once()
        assert not lock.held

    @patch("readtrack.reading.wakelock.subprocess.Popen", side_effect=OSError("no such file"))
    def test_acquire_failure_is_not_raised(self, mock_popen):
        """Test a failing inhibitor leaves the lock unheld."""
        lock = SystemdWakeLock()
        lock.acquire()
        assert not lock.held

    @patch("readtrack.reading.wakelock.shutil.which", return_value=None)
    def test_default_falls_back(self, mock_which):
        """Test the no-op lock is used without systemd-inhibit."""
        assert isinstance(default_wake_lock(), NullWakeLock)
