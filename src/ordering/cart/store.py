"""Cart Store — the current owner's cart, kept in memory and mirrored to storage.

All mutations are synchronous. A mutation that changed the cart writes the
full snapshot under the owner key that was current when it was called, then
hands the raised domain events to ``on_events``. Notifications (toasts,
logs) belong to that listener; the store itself never talks to the user.
"""

from collections.abc import Callable, Iterable

import structlog

from ordering.cart.cart import ShoppingCart
from ordering.cart.line import CartLine, line_key
from ordering.cart.views import CartSummary, GroupedProduct, group_by_product, summarize
from ordering.persistence.cart_persistence import CartPersistence, storage_key_for
from ordering.shared.money import sum_amounts, sum_quantities

logger = structlog.get_logger(__name__)

EventListener = Callable[[list], None]


class CartStore:
    def __init__(
        self,
        persistence: CartPersistence,
        owner=None,
        on_events: EventListener | None = None,
        tax_rate: float | None = None,
    ):
        self.persistence = persistence
        self.on_events = on_events
        self.tax_rate = tax_rate
        self._revision = 0
        self._unobserve: Callable[[], None] | None = None
        self._cart = ShoppingCart.create(customer_id=owner, lines=persistence.load(owner))
        self._observe(owner)

    # -------------------------------------------------------------------
    # Scope
    # -------------------------------------------------------------------
    @property
    def owner(self):
        return self._cart.customer_id

    @property
    def storage_key(self) -> str:
        return storage_key_for(self.owner)

    def switch_owner(self, owner, lines: list[CartLine] | None = None) -> None:
        """Re-scope the store to ``owner``.

        Loads the owner's stored cart, or adopts ``lines`` and stores them.
        """
        if self._unobserve is not None:
            self._unobserve()

        if lines is None:
            self._cart = ShoppingCart.create(customer_id=owner, lines=self.persistence.load(owner))
        else:
            self._cart = ShoppingCart.create(customer_id=owner, lines=lines)
            self._persist(owner)

        logger.debug("Cart store re-scoped", key=self.storage_key, line_count=len(self._cart.items))
        self._observe(owner)

    def close(self) -> None:
        if self._unobserve is not None:
            self._unobserve()
            self._unobserve = None

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_or_increment(
        self,
        product_id: int,
        product_code: str,
        product_name: str,
        size: int,
        quantity: int,
        unit_price: float,
        image_url: str | None = None,
    ) -> list:
        return self._mutate(
            lambda cart: cart.add_line(product_id, product_code, product_name, size, quantity, unit_price, image_url)
        )

    def add_sizes(self, product_id: int, product_code: str, product_name: str, sizes: Iterable, image_url=None) -> list:
        """Quick order: add several sizes of one product as a single mutation.

        ``sizes`` holds ``(size, quantity, unit_price)`` triples.
        """

        def change(cart):
            for size, quantity, unit_price in sizes:
                cart.add_line(product_id, product_code, product_name, size, quantity, unit_price, image_url)

        return self._mutate(change)

    def set_quantity(self, product_id: int, size: int, new_quantity: int) -> list:
        return self._mutate(lambda cart: cart.set_line_quantity(product_id, size, new_quantity))

    def remove_line(self, product_id: int, size: int) -> list:
        return self._mutate(lambda cart: cart.remove_line(product_id, size))

    def clear(self, reason: str = "user") -> list:
        return self._mutate(lambda cart: cart.clear(reason=reason))

    def merge_guest_lines(self, guest_lines: list[CartLine]) -> list:
        return self._mutate(lambda cart: cart.merge_guest_lines(guest_lines))

    def deduct(self, submitted_lines: list[CartLine]) -> list:
        """Subtract submitted quantities, keeping whatever was added since the snapshot."""

        def change(cart):
            for submitted in submitted_lines:
                existing = cart.find_line(submitted.product_id, submitted.size)
                if existing is not None:
                    cart.set_line_quantity(submitted.product_id, submitted.size, existing.quantity - submitted.quantity)

        return self._mutate(change)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[CartLine]:
        return self._cart.snapshot()

    def get_line(self, product_id: int, size: int) -> CartLine | None:
        key = line_key(product_id, size)
        return next((line for line in self.lines if line.key == key), None)

    @property
    def total_item_count(self) -> int:
        return sum_quantities(line.quantity for line in self.lines)

    @property
    def total_price(self) -> float:
        return sum_amounts(line.total_price for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return self.total_item_count == 0

    def grouped_by_product(self) -> list[GroupedProduct]:
        return group_by_product(self.lines)

    def summary(self) -> CartSummary:
        return summarize(self.lines, tax_rate=self.tax_rate)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _mutate(self, change: Callable[[ShoppingCart], None]) -> list:
        owner = self.owner
        change(self._cart)
        events = self._drain_events()
        if not events:
            return []

        self._persist(owner)
        self._publish(events)
        return events

    def _persist(self, owner) -> None:
        self._revision += 1
        self.persistence.save(owner, self._cart.snapshot(), revision=self._revision)

    def _drain_events(self) -> list:
        events = list(self._cart._events)
        self._cart._events.clear()
        return events

    def _publish(self, events: list) -> None:
        if self.on_events is not None and events:
            self.on_events(events)

    def _observe(self, owner) -> None:
        self._unobserve = self.persistence.observe_external_change(owner, self._on_external_change)

    def _on_external_change(self, lines: list[CartLine]) -> None:
        # Another context wrote our key: adopt it without writing it back
        self._cart.synchronize(lines)
        events = self._drain_events()
        if events:
            logger.info("Cart synchronized from another context", key=self.storage_key, line_count=len(lines))
        self._publish(events)
