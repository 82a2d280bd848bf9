"""Cart event → user notification translation.

The Cart Store hands its raised events to ``CartNotifications``, which
turns the user-visible ones into notifier messages. Direct quantity edits
and cross-context synchronization stay silent, as does the clear that
follows a submitted order (the checkout announces that itself).
"""

from ordering.cart.events import CartCleared, CartLineAdded, CartLineRemoved, CartsMerged
from ordering.notifier.port import NotificationLevel, Notifier


def message_for(event) -> tuple[NotificationLevel, str] | None:
    """Return the (level, message) a cart event should show, if any."""
    if isinstance(event, CartLineAdded):
        if event.previous_quantity:
            return NotificationLevel.SUCCESS, f"Updated {event.product_name} quantity in cart"
        return NotificationLevel.SUCCESS, f"Added {event.product_name} to cart"
    if isinstance(event, CartLineRemoved):
        return NotificationLevel.INFO, f"Removed {event.product_name} from cart"
    if isinstance(event, CartCleared) and event.reason == "user":
        return NotificationLevel.INFO, "Cart cleared"
    if isinstance(event, CartsMerged) and event.items_merged_count > 0:
        return NotificationLevel.INFO, "Guest cart merged with your account"
    return None


class CartNotifications:
    """Cart Store event listener that forwards messages to a notifier."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    def __call__(self, events: list) -> None:
        for event in events:
            message = message_for(event)
            if message is not None:
                self.notifier.notify(*message)
