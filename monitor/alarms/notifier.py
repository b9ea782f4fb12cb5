"""
Notification delivery.

The core only produces Notification records; these notifiers hand them
to a log or the terminal. Whether delivery is allowed at all is decided
outside the core and passed to NotificationDispatcher as a flag.
"""

import logging
from typing import Protocol

from rich.console import Console
from rich.text import Text

from .models import Notification, Severity

logger = logging.getLogger(__name__)

SEVERITY_STYLES = {
    Severity.INFO: "cyan",
    Severity.SUCCESS: "green",
    Severity.WARNING: "bold yellow",
    Severity.ERROR: "bold red",
}

SEVERITY_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class Notifier(Protocol):
    """Anything that can deliver a notification."""

    def notify(self, notification: Notification) -> None: ...


class LogNotifier:
    """Writes notifications to the log at a level matching their severity."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def notify(self, notification: Notification) -> None:
        level = SEVERITY_LOG_LEVELS[notification.severity]
        self.log.log(level, f"{notification.title}: {notification.body}")


class ConsoleNotifier:
    """Prints notifications to the terminal with rich styling."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def notify(self, notification: Notification) -> None:
        text = Text()
        text.append(f"{notification.title} ", style=SEVERITY_STYLES[notification.severity])
        text.append(notification.body)
        self.console.print(text)


class NotificationDispatcher:
    """
    Forwards notifications to a notifier while delivery is enabled.

    Suppressed notifications are counted so the caller can tell the user
    how many alerts were missed.
    """

    def __init__(self, notifier: Notifier, enabled: bool = True) -> None:
        self.notifier = notifier
        self.enabled = enabled
        self.suppressed = 0

    def dispatch(self, notifications: list[Notification]) -> int:
        """
        Deliver notifications.

        Returns:
            Number of notifications delivered
        """
        if not self.enabled:
            self.suppressed += len(notifications)
            return 0

        for notification in notifications:
            self.notifier.notify(notification)
        return len(notifications)
