"""Storefront session: wires one shopper's cart, identity and checkout.

A ``Storefront`` is one execution context: it owns a key-value store
handle, an identity, a cart store scoped to that identity, the login
merge coordinator and the checkout orchestrator. Several sessions share
storage and see each other's cart writes, like browser tabs.

``StorefrontRegistry`` keeps the live sessions of the HTTP surface.
"""

from uuid import uuid4

import structlog

from ordering import config
from ordering.cart.merge import GuestCartMerger
from ordering.cart.notifications import CartNotifications
from ordering.cart.store import CartStore
from ordering.checkout import get_order_service
from ordering.checkout.orchestrator import CheckoutOrchestrator
from ordering.identity.session import SessionIdentity
from ordering.notifier.recording import RecordingNotifier
from ordering.persistence import open_store
from ordering.persistence.cart_persistence import CartPersistence
from ordering.persistence.port import KeyValueStore
from ordering.stock import get_stock_authority
from ordering.stock.validator import StockValidator

logger = structlog.get_logger(__name__)


class Storefront:
    def __init__(
        self,
        session_id: str | None = None,
        store: KeyValueStore | None = None,
        identity: SessionIdentity | None = None,
        stock_authority=None,
        order_service=None,
        notifier=None,
        tax_rate: float | None = None,
    ):
        self.session_id = session_id or uuid4().hex
        self.kv_store = store if store is not None else open_store()
        self.identity = identity or SessionIdentity()
        self.notifier = notifier or RecordingNotifier()

        self.persistence = CartPersistence(self.kv_store)
        self.cart = CartStore(
            self.persistence,
            owner=self.identity.current_user_id,
            on_events=CartNotifications(self.notifier),
            tax_rate=config.CART_TAX_RATE if tax_rate is None else tax_rate,
        )
        self.merger = GuestCartMerger(self.cart, self.persistence, self.identity)
        self.checkout = CheckoutOrchestrator(
            self.cart,
            self.identity,
            StockValidator(stock_authority or get_stock_authority()),
            order_service or get_order_service(),
            notifier=self.notifier,
        )

    def login(self, user_id, profile: dict | None = None) -> None:
        self.identity.login(user_id, profile)

    def logout(self) -> None:
        self.identity.logout()

    def pump_external_changes(self, timeout: float = 0.0) -> int:
        """Deliver pending change notifications for stores that need polling."""
        poll = getattr(self.kv_store, "poll", None)
        if poll is None:
            return 0
        return poll(timeout)

    def close(self) -> None:
        self.merger.close()
        self.cart.close()
        logger.debug("Storefront session closed", session_id=self.session_id)


class StorefrontRegistry:
    def __init__(self):
        self._sessions: dict[str, Storefront] = {}

    def open(self, **kwargs) -> Storefront:
        storefront = Storefront(**kwargs)
        self._sessions[storefront.session_id] = storefront
        logger.info("Storefront session opened", session_id=storefront.session_id)
        return storefront

    def get(self, session_id: str) -> Storefront | None:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> bool:
        storefront = self._sessions.pop(session_id, None)
        if storefront is None:
            return False
        storefront.close()
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


_registry: StorefrontRegistry | None = None


def get_registry() -> StorefrontRegistry:
    global _registry
    if _registry is None:
        _registry = StorefrontRegistry()
    return _registry


def reset_registry() -> None:
    global _registry
    if _registry is not None:
        _registry.close_all()
    _registry = None
