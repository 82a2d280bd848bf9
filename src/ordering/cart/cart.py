"""Shopping Cart aggregate — line items keyed by (product, size) for one owner.

The cart belongs to exactly one owner identity: a signed-in customer
(``customer_id``) or the guest (``customer_id`` is None). It is not stored
through a Protean repository; the Cart Store mirrors its snapshot to a
durable key-value store after every change.

Invalid mutation arguments (non-positive quantities, unknown lines) are
no-ops rather than errors, so every method here is safe to call from UI
event handlers. A method that changed state raises exactly one event; a
no-op raises none.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartCleared,
    CartLineAdded,
    CartLineQuantityUpdated,
    CartLineRemoved,
    CartsMerged,
    CartSynchronized,
)
from ordering.cart.line import CartLine, line_key
from ordering.cart.merge import merge_lines
from ordering.domain import ordering
from ordering.shared.money import line_total


@ordering.entity(part_of="ShoppingCart")
class CartLineItem:
    product_id = Integer(required=True)
    product_code = String(max_length=100)
    product_name = String(max_length=255)
    size = Integer(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)  # Captured at first add, never repriced
    image_url = String(max_length=1024)

    @property
    def total_price(self) -> float:
        return line_total(self.unit_price, self.quantity)

    def matches(self, product_id, size) -> bool:
        return line_key(self.product_id, self.size) == line_key(product_id, size)

    def to_line(self) -> CartLine:
        return CartLine(
            product_id=self.product_id,
            product_code=self.product_code or "",
            product_name=self.product_name or "",
            size=self.size,
            quantity=self.quantity,
            unit_price=self.unit_price,
            image_url=self.image_url,
        )


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier()  # None for the guest cart
    items = HasMany(CartLineItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product_size(self):
        keys = [line_key(item.product_id, item.size) for item in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A cart holds at most one line per product and size"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None, lines: Iterable[CartLine] = ()):
        """Build a cart for an owner, optionally seeded with stored lines (no events)."""
        now = datetime.now(UTC)
        cart = cls(customer_id=customer_id, created_at=now, updated_at=now)
        for line in lines:
            cart.add_items(cls._item_from_line(line))
        return cart

    @property
    def is_guest(self) -> bool:
        return self.customer_id is None

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_line(self, product_id, product_code, product_name, size, quantity, unit_price, image_url=None):
        """Add a product size, or increase the quantity of the existing line.

        An existing line keeps the unit price it was first added with.
        """
        if quantity is None or quantity <= 0:
            return

        existing = self.find_line(product_id, size)
        if existing:
            previous_quantity = existing.quantity
            existing.quantity = previous_quantity + quantity
            new_quantity = existing.quantity
            product_name = existing.product_name
        else:
            previous_quantity = 0
            new_quantity = quantity
            self.add_items(
                CartLineItem(
                    product_id=product_id,
                    product_code=product_code,
                    product_name=product_name,
                    size=size,
                    quantity=quantity,
                    unit_price=unit_price,
                    image_url=image_url,
                )
            )

        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                product_id=product_id,
                product_name=product_name,
                size=size,
                quantity=quantity,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def set_line_quantity(self, product_id, size, new_quantity):
        """Overwrite a line's quantity; zero or less removes the line."""
        existing = self.find_line(product_id, size)
        if existing is None:
            return
        if new_quantity is None or new_quantity <= 0:
            self.remove_line(product_id, size)
            return
        if existing.quantity == new_quantity:
            return

        previous_quantity = existing.quantity
        existing.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartLineQuantityUpdated(
                cart_id=str(self.id),
                product_id=existing.product_id,
                product_name=existing.product_name,
                size=existing.size,
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_line(self, product_id, size):
        existing = self.find_line(product_id, size)
        if existing is None:
            return

        self.remove_items(existing)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartLineRemoved(
                cart_id=str(self.id),
                product_id=existing.product_id,
                product_name=existing.product_name,
                size=existing.size,
            )
        )

    def clear(self, reason="user"):
        if not self.items:
            return

        line_count = len(self.items)
        for item in list(self.items):
            self.remove_items(item)

        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), reason=reason, line_count=line_count))

    # -------------------------------------------------------------------
    # Bulk replacement (login merge, cross-context sync)
    # -------------------------------------------------------------------
    def merge_guest_lines(self, guest_lines: list[CartLine]):
        """Merge a guest cart's lines into this customer's cart.

        Matching lines sum their quantities and keep this cart's unit price.
        """
        if not guest_lines:
            return

        self._apply_lines(merge_lines(guest_lines, self.snapshot()))
        self.raise_(
            CartsMerged(
                cart_id=str(self.id),
                customer_id=str(self.customer_id) if self.customer_id is not None else None,
                items_merged_count=len(guest_lines),
            )
        )

    def synchronize(self, lines: list[CartLine]):
        """Adopt lines written to storage by another execution context."""
        if list(lines) == self.snapshot():
            return

        self._apply_lines(lines)
        self.raise_(CartSynchronized(cart_id=str(self.id), line_count=len(lines)))

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def find_line(self, product_id, size) -> CartLineItem | None:
        return next((item for item in self.items if item.matches(product_id, size)), None)

    def snapshot(self) -> list[CartLine]:
        return [item.to_line() for item in self.items]

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _item_from_line(line: CartLine) -> CartLineItem:
        return CartLineItem(
            product_id=line.product_id,
            product_code=line.product_code,
            product_name=line.product_name,
            size=line.size,
            quantity=line.quantity,
            unit_price=line.unit_price,
            image_url=line.image_url,
        )

    def _apply_lines(self, lines: list[CartLine]):
        """Reshape the item collection to match ``lines``.

        Removals run first and additions last so the one-line-per-key
        invariant holds after every step.
        """
        wanted = {line.key: line for line in lines}

        for item in list(self.items):
            if line_key(item.product_id, item.size) not in wanted:
                self.remove_items(item)

        for key, line in wanted.items():
            existing = self.find_line(*key)
            if existing is None:
                self.add_items(self._item_from_line(line))
            else:
                existing.quantity = line.quantity
                existing.unit_price = line.unit_price
                existing.product_code = line.product_code
                existing.product_name = line.product_name
                existing.image_url = line.image_url

        self.updated_at = datetime.now(UTC)
