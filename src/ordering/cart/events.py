"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartLineAdded:
    """A product size was added to the cart, or its quantity was increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Integer(required=True)
    product_name = String()
    size = Integer(required=True)
    quantity = Integer(required=True)  # Quantity added by this call
    previous_quantity = Integer(default=0)  # 0 when the line is new
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartLineQuantityUpdated:
    """The quantity of a cart line was overwritten."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Integer(required=True)
    product_name = String()
    size = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartLineRemoved:
    """A cart line was removed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Integer(required=True)
    product_name = String()
    size = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """All lines were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    reason = String(default="user")  # "user" or "order_submitted"
    line_count = Integer(default=0)


@ordering.event(part_of="ShoppingCart")
class CartsMerged:
    """A guest cart's lines were merged into a customer's cart at login."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier()
    items_merged_count = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartSynchronized:
    """The cart adopted lines written to storage by another execution context."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_count = Integer(default=0)
