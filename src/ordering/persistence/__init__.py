"""Durable cart storage — adapter factory.

Provides get_store() / set_store() / reset_store() to swap the key-value
store behind cart persistence:
- MemoryKeyValueStore (default) for development and testing
- RedisKeyValueStore for deployments with several processes
"""

from ordering import config
from ordering.persistence.memory_adapter import MemoryStorageArea
from ordering.persistence.port import KeyValueStore

_storage_area: MemoryStorageArea | None = None
_current_store: KeyValueStore | None = None


def get_storage_area() -> MemoryStorageArea:
    """Return the process-wide in-memory storage area."""
    global _storage_area
    if _storage_area is None:
        _storage_area = MemoryStorageArea()
    return _storage_area


def open_store() -> KeyValueStore:
    """Open a store handle for a new execution context (one per session).

    Uses the in-memory area by default. Configure CART_STORAGE_ADAPTER=redis
    to share carts across processes.
    """
    if _current_store is not None:
        return _current_store

    adapter = config.CART_STORAGE_ADAPTER
    if adapter == "memory":
        return get_storage_area().open_context()
    if adapter == "redis":
        from ordering.persistence.redis_adapter import RedisKeyValueStore

        return RedisKeyValueStore()
    raise ValueError(f"Unknown cart storage adapter: {adapter}")


def set_store(store: KeyValueStore) -> None:
    """Force every new session onto one store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_store() -> None:
    """Drop overrides and wipe the in-memory storage area."""
    global _current_store, _storage_area
    _current_store = None
    if _storage_area is not None:
        _storage_area.reset()
    _storage_area = None
