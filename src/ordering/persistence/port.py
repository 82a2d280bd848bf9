"""Key-value store port — durable string storage shared between contexts.

Mirrors the contract of browser local storage: string keys and values,
synchronous reads and writes, and change notifications for the whole
storage area (not per key). Notifications describe writes made by *other*
execution contexts; a context is never told about its own writes.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class StorageChange:
    """A key was written (``new_value`` set) or deleted (``new_value`` None)."""

    key: str
    new_value: str | None
    old_value: str | None = None


StorageListener = Callable[[StorageChange], None]


class KeyValueStore(ABC):
    """Abstract interface for key-value store adapters."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """Register a listener for changes made by other contexts.

        Returns:
            A callable that removes the listener.
        """
        ...
