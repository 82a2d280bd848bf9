"""Recording notifier: keeps messages in memory for the API and for tests."""

from ordering.notifier.port import NotificationLevel, Notifier


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages: list[dict] = []

    def notify(self, level: NotificationLevel, message: str) -> None:
        self.messages.append({"level": level.value, "message": message})

    def drain(self) -> list[dict]:
        """Return and forget everything recorded so far."""
        messages, self.messages = self.messages, []
        return messages

    def reset(self):
        self.messages.clear()
