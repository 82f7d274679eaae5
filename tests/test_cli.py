"""Tests for the CLI interface."""

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from readtrack.cli import app
from readtrack.reading.wakelock import NullWakeLock


@pytest.fixture(autouse=True)
def setup_test_env(tmp_path: Path, monkeypatch):
    """Point the app at temporary files and a test user."""
    monkeypatch.setenv("READTRACK_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("READTRACK_STATE_PATH", str(tmp_path / "state.json"))
    monkeypatch.setenv("READTRACK_USER_ID", "cli-user")
    # Keep reminders on the console channel
    for var in ("DISPLAY", "WAYLAND_DISPLAY", "DBUS_SESSION_BUS_ADDRESS"):
        monkeypatch.delenv(var, raising=False)
    with patch("readtrack.app.default_wake_lock", return_value=NullWakeLock()):
        yield


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        """Test that help command works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Track your reading" in result.stdout

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_signed_out(self, runner: CliRunner, monkeypatch):
        """Test commands fail cleanly without a user."""
        monkeypatch.delenv("READTRACK_USER_ID")
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 1
        assert "Sign in" in result.stdout


class TestBookCommands:
    """Tests for book commands."""

    def test_add_book(self, runner: CliRunner):
        """Test adding a book."""
        result = runner.invoke(app, ["add", "Dune", "Herbert", "688"])
        assert result.exit_code == 0
        assert "Added:" in result.stdout

    def test_add_invalid_pages(self, runner: CliRunner):
        """Test a non-numeric page count is rejected."""
        result = runner.invoke(app, ["add", "Dune", "Herbert", "many"])
        assert result.exit_code == 1
        assert "valid number" in result.stdout

    def test_add_unknown_status(self, runner: CliRunner):
        """Test an unknown status is a usage error."""
        result = runner.invoke(app, ["add", "Dune", "Herbert", "10", "--status", "wishlist"])
        assert result.exit_code != 0

    def test_list_empty(self, runner: CliRunner):
        """Test listing when no books exist."""
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No books found" in result.stdout

    def test_list_with_books(self, runner: CliRunner):
        """Test listing books on their shelves."""
        runner.invoke(app, ["add", "Dune", "Herbert", "688"])
        runner.invoke(app, ["add", "Emma", "Austen", "400", "--status", "reading"])

        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "Dune" in result.stdout
        assert "Emma" in result.stdout
        assert "Leyendo" in result.stdout

    def test_list_by_status(self, runner: CliRunner):
        """Test filtering by shelf."""
        runner.invoke(app, ["add", "Dune", "Herbert", "688"])
        runner.invoke(app, ["add", "Emma", "Austen", "400", "--status", "reading"])

        result = runner.invoke(app, ["list", "--status", "reading"])
        assert "Emma" in result.stdout
        assert "Dune" not in result.stdout

    def test_progress_to_last_page(self, runner: CliRunner):
        """Test finishing a book through the progress command."""
        runner.invoke(app, ["add", "Dune", "Herbert", "688"])

        result = runner.invoke(app, ["progress", "Dune", "688"])
        assert result.exit_code == 0
        assert "688/688" in result.stdout
        assert "Leído" in result.stdout

    def test_progress_unknown_book(self, runner: CliRunner):
        """Test editing a book that does not exist."""
        result = runner.invoke(app, ["progress", "Nothing", "5"])
        assert result.exit_code == 1
        assert "No book found" in result.stdout

    def test_delete_with_confirmation(self, runner: CliRunner):
        """Test deleting after confirming."""
        runner.invoke(app, ["add", "Dune", "Herbert", "688"])

        result = runner.invoke(app, ["delete", "Dune"], input="y\n")
        assert result.exit_code == 0
        assert "Deleted: Dune" in result.stdout
        assert "No books found" in runner.invoke(app, ["list"]).stdout

    def test_summary(self, runner: CliRunner):
        """Test the summary panel."""
        runner.invoke(app, ["add", "Dune", "Herbert", "688"])
        result = runner.invoke(app, ["summary"])
        assert result.exit_code == 0
        assert "Reading Summary" in result.stdout
        assert "Por Leer: 1" in result.stdout

    def test_export(self, runner: CliRunner, tmp_path: Path):
        """Test exporting documents to a file."""
        runner.invoke(app, ["add", "Dune", "Herbert", "688"])
        out = tmp_path / "export.json"

        result = runner.invoke(app, ["export", "--output", str(out)])
        assert result.exit_code == 0
        assert '"totalPages": 688' in out.read_text()


class TestSessionCommands:
    """Tests for timer and session history."""

    def test_sessions_empty(self, runner: CliRunner):
        """Test history without sessions."""
        result = runner.invoke(app, ["sessions"])
        assert result.exit_code == 0
        assert "No reading sessions yet" in result.stdout

    def test_timer_short_session_discarded(self, runner: CliRunner):
        """Test stopping at once offers to discard the session."""
        runner.invoke(app, ["add", "Dune", "Herbert", "688"])

        with patch("readtrack.cli.time.sleep", side_effect=KeyboardInterrupt):
            result = runner.invoke(app, ["timer", "Dune"], input="y\n")

        assert result.exit_code == 0
        assert "Session discarded" in result.stdout
        assert "No reading sessions yet" in runner.invoke(app, ["sessions"]).stdout

    def test_timer_without_book(self, runner: CliRunner):
        """Test the timer needs an existing book."""
        result = runner.invoke(app, ["timer", "Nothing"])
        assert result.exit_code == 1


class TestGoalCommands:
    """Tests for goal commands."""

    def test_goal_lifecycle(self, runner: CliRunner):
        """Test creating, adjusting, listing and deleting a chapters goal."""
        result = runner.invoke(
            app,
            ["goal", "add", "Chap", "--unit", "chapters", "--deadline", "2099-12-31", "--target", "10"],
        )
        assert result.exit_code == 0
        assert "Goal created" in result.stdout

        assert "Chap: 1/10" in runner.invoke(app, ["goal", "inc", "Chap"]).stdout
        assert "Chap: 0/10" in runner.invoke(app, ["goal", "dec", "Chap"]).stdout
        assert "Chap: 0/10" in runner.invoke(app, ["goal", "dec", "Chap"]).stdout

        listing = runner.invoke(app, ["goal", "list"])
        assert "Chap" in listing.stdout

        result = runner.invoke(app, ["goal", "delete", "Chap", "--yes"])
        assert result.exit_code == 0
        assert "No reading goals set" in runner.invoke(app, ["goal", "list"]).stdout

    def test_goal_invalid_target(self, runner: CliRunner):
        """Test a zero target is rejected."""
        result = runner.invoke(
            app, ["goal", "add", "Zero", "--deadline", "2099-12-31", "--target", "0"]
        )
        assert result.exit_code == 1
        assert "greater than 0" in result.stdout

    def test_inc_on_automated_goal(self, runner: CliRunner):
        """Test manual edits are refused for books goals."""
        runner.invoke(app, ["goal", "add", "Books", "--deadline", "2099-12-31", "--target", "3"])
        result = runner.invoke(app, ["goal", "inc", "Books"])
        assert result.exit_code == 1


class TestNotifyCommands:
    """Tests for reminder commands."""

    def test_check_nothing_pending(self, runner: CliRunner):
        """Test a check without goals."""
        result = runner.invoke(app, ["notify", "check"])
        assert result.exit_code == 0
        assert "Nothing to remind" in result.stdout

    def test_check_sends_once_per_day(self, runner: CliRunner):
        """Test the daily limit and the test flag."""
        runner.invoke(app, ["goal", "add", "Books", "--deadline", "2099-12-31", "--target", "3"])

        assert "Reminder sent via console" in runner.invoke(app, ["notify", "check"]).stdout
        assert "Already reminded today" in runner.invoke(app, ["notify", "check"]).stdout
        assert "Reminder sent" in runner.invoke(app, ["notify", "check", "--test"]).stdout
