"""Notifier port for short user-facing messages (toasts in the storefront UI)."""

from abc import ABC, abstractmethod
from enum import Enum


class NotificationLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notifier(ABC):
    """Abstract notifier interface."""

    @abstractmethod
    def notify(self, level: NotificationLevel, message: str) -> None:
        """Show ``message`` to the user at ``level``."""
        ...
