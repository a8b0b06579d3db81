"""Adapters for delivering editor notifications."""

from flowsmith.adapters.notifications import (
    ListSink,
    LoggingSink,
    Notification,
    NotificationLevel,
    NotificationSink,
)

__all__ = [
    "NotificationSink",
    "ListSink",
    "LoggingSink",
    "Notification",
    "NotificationLevel",
]
