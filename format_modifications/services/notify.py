"""User-facing notices, collected per request and mirrored to the log"""

from __future__ import annotations

import logging

from format_modifications.models.format import Notification, NotificationLevel

logger = logging.getLogger("format_modifications")

_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class Notifier:
    def __init__(self):
        self.notifications: list[Notification] = []

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO):
        logger.log(_LOG_LEVELS[level], "[format-modifications] %s", message)
        self.notifications.append(Notification(level=level, message=message))

    def warn(self, message: str):
        self.notify(message, NotificationLevel.WARNING)

    def error(self, message: str):
        self.notify(message, NotificationLevel.ERROR)
