"""Notifier factory.

Provides get_notifier() / set_notifier() / reset_notifier():
- LoggingNotifier by default
- RecordingNotifier per storefront session and in tests
"""

from ordering.notifier.logging_adapter import LoggingNotifier
from ordering.notifier.port import NotificationLevel, Notifier

_current_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """Return the current notifier. Defaults to LoggingNotifier."""
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = LoggingNotifier()
    return _current_notifier


def set_notifier(notifier: Notifier) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None


__all__ = ["NotificationLevel", "Notifier", "get_notifier", "reset_notifier", "set_notifier"]
