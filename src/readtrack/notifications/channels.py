"""Native notification channels.

Channels that keep working in the background are preferred; the immediate
console channel is the last resort. A channel that is missing or fails is
skipped silently apart from a log line.
"""

import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Iterable, Optional

import structlog
from rich.console import Console
from rich.panel import Panel

from ..errors import NotificationUnavailableError
from .message import Notification

logger = structlog.get_logger(__name__)


class NotificationChannel(ABC):
    """A way of putting a notification in front of the user."""

    name: str = "channel"
    background: bool = False  # delivers without the app in the foreground

    @abstractmethod
    def available(self) -> bool:
        """Whether this channel can deliver right now."""

    @abstractmethod
    def show(self, notification: Notification) -> None:
        """Deliver a notification.

        Raises:
            NotificationUnavailableError: If delivery failed
        """


class DesktopChannel(NotificationChannel):
    """Desktop notifications through the notify-send executable."""

    name = "desktop"
    background = True
    COMMAND = "notify-send"

    def available(self) -> bool:
        if shutil.which(self.COMMAND) is None:
            return False
        return any(
            os.environ.get(var)
            for var in ("DISPLAY", "WAYLAND_DISPLAY", "DBUS_SESSION_BUS_ADDRESS")
        )

    def show(self, notification: Notification) -> None:
        command = [self.COMMAND, "--app-name=readtrack", f"--icon={notification.icon}"]
        if notification.tag:
            # Same tag replaces the previous alert on servers that support hints
            command.append(f"--hint=string:x-canonical-private-synchronous:{notification.tag}")
        command += [notification.title, notification.body]
        try:
            subprocess.run(command, check=True, timeout=5, capture_output=True)
        except (OSError, subprocess.SubprocessError) as e:
            raise NotificationUnavailableError(f"notify-send failed: {e}") from e


class ConsoleChannel(NotificationChannel):
    """Immediate notification printed to the terminal."""

    name = "console"
    background = False

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def available(self) -> bool:
        return True

    def show(self, notification: Notification) -> None:
        self.console.bell()
        self.console.print(
            Panel(notification.body, title=f"[bold]{notification.title}[/bold]", border_style="yellow")
        )


def default_channels(console: Optional[Console] = None) -> list[NotificationChannel]:
    """Background channel first, console last."""
    return [DesktopChannel(), ConsoleChannel(console)]


def dispatch(
    notification: Notification, channels: Iterable[NotificationChannel]
) -> Optional[NotificationChannel]:
    """Deliver through the first channel that works.

    Background channels are tried before immediate ones.

    Returns:
        The channel that delivered, or None if none could
    """
    ordered = sorted(channels, key=lambda c: not c.background)
    for channel in ordered:
        if not channel.available():
            logger.debug("notification_channel_unavailable", channel=channel.name)
            continue
        try:
            channel.show(notification)
        except NotificationUnavailableError as e:
            logger.warning("notification_channel_failed", channel=channel.name, error=str(e))
            continue
        logger.info("notification_sent", channel=channel.name, title=notification.title)
        return channel

    logger.warning("notification_not_delivered", title=notification.title)
    return None
