"""Durable cart persistence — cart snapshots in a key-value store.

Each owner has one storage key: ``guestCart`` for the guest,
``userCart_<id>`` for a signed-in customer. The value is a JSON envelope::

    {"version": 1, "revision": 7, "items": [{"productId": 1, ...}, ...]}

Bare JSON arrays written before the envelope existed are still readable.
Totals inside stored items are ignored and recomputed on load.

Storage is best effort. Read failures and unreadable payloads load as an
empty cart, write failures are logged, and nothing raises to the caller:
the in-memory cart stays authoritative for the running session.
"""

import json
from collections.abc import Callable

import structlog

from ordering.cart.line import CartLine
from ordering.persistence.port import KeyValueStore, StorageChange

logger = structlog.get_logger(__name__)

GUEST_CART_KEY = "guestCart"
USER_CART_KEY_PREFIX = "userCart_"
SCHEMA_VERSION = 1


def storage_key_for(owner) -> str:
    """Storage key for an owner identity (None means guest)."""
    if owner is None:
        return GUEST_CART_KEY
    return f"{USER_CART_KEY_PREFIX}{owner}"


def encode_lines(lines: list[CartLine], revision: int = 0) -> str:
    return json.dumps(
        {
            "version": SCHEMA_VERSION,
            "revision": revision,
            "items": [line.to_dict() for line in lines],
        }
    )


def decode_lines(raw: str | None) -> list[CartLine]:
    """Parse a stored value. Raises ValueError for anything unreadable."""
    if raw is None:
        return []

    payload = json.loads(raw)
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        if payload.get("version") != SCHEMA_VERSION:
            raise ValueError(f"Unsupported cart schema version: {payload.get('version')!r}")
        items = payload.get("items", [])
    else:
        raise ValueError("Stored cart is neither an envelope nor a list")

    if not isinstance(items, list):
        raise ValueError("Stored cart items must be a list")

    lines: dict = {}
    for item in items:
        try:
            line = CartLine.from_dict(item)
        except (KeyError, TypeError, AttributeError, OverflowError) as exc:
            raise ValueError(f"Invalid stored cart line: {exc}") from exc
        # Duplicate keys cannot be produced by the cart; keep the last one if a hand-edited payload has them
        lines[line.key] = line
    return list(lines.values())


class CartPersistence:
    """Maps cart snapshots to and from a key-value store, per owner."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._last_revision: dict[str, int] = {}

    def save(self, owner, lines: list[CartLine], revision: int | None = None) -> bool:
        """Write the full line collection for ``owner``.

        When ``revision`` is given, a write not newer than the last revision
        written for the same key is dropped as stale.

        Returns:
            True if the value reached the store.
        """
        key = storage_key_for(owner)
        if revision is not None:
            last = self._last_revision.get(key)
            if last is not None and revision <= last:
                logger.debug("Dropping stale cart write", key=key, revision=revision, last_revision=last)
                return False

        try:
            self.store.set(key, encode_lines(lines, revision or 0))
        except Exception as exc:
            logger.warning("Failed to persist cart", key=key, error=str(exc))
            return False

        if revision is not None:
            self._last_revision[key] = revision
        return True

    def load(self, owner) -> list[CartLine]:
        key = storage_key_for(owner)
        try:
            raw = self.store.get(key)
        except Exception as exc:
            logger.warning("Failed to read cart from storage", key=key, error=str(exc))
            return []

        try:
            return decode_lines(raw)
        except ValueError as exc:
            logger.warning("Discarding unreadable stored cart", key=key, error=str(exc))
            return []

    def delete(self, owner) -> None:
        key = storage_key_for(owner)
        try:
            self.store.delete(key)
        except Exception as exc:
            logger.warning("Failed to delete stored cart", key=key, error=str(exc))
        self._last_revision.pop(key, None)

    def observe_external_change(self, owner, callback: Callable[[list[CartLine]], None]) -> Callable[[], None]:
        """Call ``callback`` with the new lines whenever another context writes ``owner``'s key.

        Changes to any other key (another customer, the guest cart after
        login) are ignored. A deleted key is reported as an empty cart.

        Returns:
            A callable that stops the observation.
        """
        key = storage_key_for(owner)

        def on_change(change: StorageChange) -> None:
            if change.key != key:
                return
            try:
                lines = decode_lines(change.new_value)
            except ValueError as exc:
                logger.warning("Ignoring unreadable external cart change", key=key, error=str(exc))
                return
            logger.debug("External cart change", key=key, line_count=len(lines))
            callback(lines)

        return self.store.subscribe(on_change)
