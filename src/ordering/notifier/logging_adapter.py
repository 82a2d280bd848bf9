"""Logging notifier: writes user-facing messages to the structured log."""

import structlog

from ordering.notifier.port import NotificationLevel, Notifier

logger = structlog.get_logger(__name__)

_LOG_METHODS = {
    NotificationLevel.SUCCESS: "info",
    NotificationLevel.INFO: "info",
    NotificationLevel.WARNING: "warning",
    NotificationLevel.ERROR: "error",
}


class LoggingNotifier(Notifier):
    def notify(self, level: NotificationLevel, message: str) -> None:
        getattr(logger, _LOG_METHODS[level])("User notification", level=level.value, message=message)
