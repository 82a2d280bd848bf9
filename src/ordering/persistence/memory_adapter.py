"""In-memory key-value store with one storage area and many execution contexts.

``MemoryStorageArea`` holds the data; each ``MemoryKeyValueStore`` is one
context's handle on it (a browser tab, a storefront session). A write
through one handle notifies the listeners of every *other* handle, which
is how storage events behave in browsers.
"""

from collections.abc import Callable
from itertools import count

import structlog

from ordering.persistence.port import KeyValueStore, StorageChange, StorageListener

logger = structlog.get_logger(__name__)


class MemoryStorageArea:
    """Shared storage backing any number of context handles."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self._listeners: list[tuple[int, StorageListener]] = []
        self._context_ids = count(1)
        self.fail_writes = False
        self.fail_reads = False

    def configure(self, fail_writes: bool = False, fail_reads: bool = False) -> None:
        """Simulate an unavailable or full storage (for testing)."""
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads

    def open_context(self) -> "MemoryKeyValueStore":
        return MemoryKeyValueStore(self, next(self._context_ids))

    def add_listener(self, context_id: int, listener: StorageListener) -> Callable[[], None]:
        entry = (context_id, listener)
        self._listeners.append(entry)

        def unsubscribe():
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def broadcast(self, origin: int, change: StorageChange) -> None:
        for context_id, listener in list(self._listeners):
            if context_id == origin:
                continue
            # Listener failures belong to the other context and must not fail this write
            try:
                listener(change)
            except Exception as exc:
                logger.warning("Storage listener failed", key=change.key, context_id=context_id, error=str(exc))

    def reset(self) -> None:
        self.data.clear()
        self._listeners.clear()
        self.fail_writes = False
        self.fail_reads = False


class MemoryKeyValueStore(KeyValueStore):
    """One execution context's view of a ``MemoryStorageArea``."""

    def __init__(self, area: MemoryStorageArea | None = None, context_id: int = 0):
        self.area = area if area is not None else MemoryStorageArea()
        self.context_id = context_id

    def get(self, key: str) -> str | None:
        if self.area.fail_reads:
            raise OSError("Storage is unavailable")
        return self.area.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.area.fail_writes:
            raise OSError("Storage quota exceeded")
        old_value = self.area.data.get(key)
        self.area.data[key] = value
        self.area.broadcast(self.context_id, StorageChange(key=key, new_value=value, old_value=old_value))

    def delete(self, key: str) -> None:
        if self.area.fail_writes:
            raise OSError("Storage is unavailable")
        if key not in self.area.data:
            return
        old_value = self.area.data.pop(key)
        self.area.broadcast(self.context_id, StorageChange(key=key, new_value=None, old_value=old_value))

    def subscribe(self, listener: StorageListener):
        return self.area.add_listener(self.context_id, listener)
