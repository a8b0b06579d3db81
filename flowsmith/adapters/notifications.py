"""Notification sinks for user-facing messages.

The editor reports the outcome of every user action as a short, dismissable
notification. Where those end up (a UI toast queue, a list in tests, the
log) is decided by the sink the session was given.
"""

import logging
from enum import Enum

from pydantic import BaseModel

from flowsmith.utils.identifiers import utc_timestamp

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    info = "info"
    warning = "warning"
    destructive = "destructive"


class Notification(BaseModel):
    title: str
    description: str
    level: NotificationLevel = NotificationLevel.info
    created_at: str


class NotificationSink:
    """Protocol for receiving notifications."""

    def append(self, notification: Notification) -> None:
        """Append a notification to the sink."""
        raise NotImplementedError

    def notify(
        self,
        title: str,
        description: str,
        level: NotificationLevel = NotificationLevel.info,
    ) -> Notification:
        notification = Notification(
            title=title,
            description=description,
            level=level,
            created_at=utc_timestamp(),
        )
        self.append(notification)
        return notification


class ListSink(NotificationSink):
    """Stores notifications in a list."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def append(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.notifications]

    def clear(self) -> None:
        """Clear all notifications."""
        self.notifications.clear()


class LoggingSink(NotificationSink):
    """Writes notifications to the log."""

    _LEVELS = {
        NotificationLevel.info: logging.INFO,
        NotificationLevel.warning: logging.WARNING,
        NotificationLevel.destructive: logging.ERROR,
    }

    def append(self, notification: Notification) -> None:
        logger.log(
            self._LEVELS[notification.level],
            "%s: %s",
            notification.title,
            notification.description,
        )
