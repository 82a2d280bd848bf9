"""Guest → customer cart merge.

``merge_lines`` is the pure algorithm. ``GuestCartMerger`` runs it when
the identity goes from guest to signed in, exactly once per login.
"""

import structlog

from ordering.cart.line import CartLine

logger = structlog.get_logger(__name__)


def merge_lines(guest_lines: list[CartLine], authenticated_lines: list[CartLine]) -> list[CartLine]:
    """Combine a guest cart into a customer cart.

    The customer's lines are the base. A guest line whose (product, size)
    is already there adds its quantity, priced at the customer's unit
    price. Any other guest line is appended unchanged. Merging an empty
    guest cart returns the base as is.
    """
    merged: dict = {line.key: line for line in authenticated_lines}
    for guest_line in guest_lines:
        base = merged.get(guest_line.key)
        if base is None:
            merged[guest_line.key] = guest_line
        else:
            merged[guest_line.key] = base.with_quantity(base.quantity + guest_line.quantity)
    return list(merged.values())


class GuestCartMerger:
    """Re-scopes the cart store on identity changes, merging the guest cart at login.

    Identity signals may fire more than once for the same sign-in. The
    merger remembers which user it already merged for and ignores repeats
    until the next logout.
    """

    def __init__(self, store, persistence, identity):
        self.store = store
        self.persistence = persistence
        self.identity = identity
        self._merged_for = None
        self._unsubscribe = identity.subscribe(self.on_identity_change)

    def close(self) -> None:
        self._unsubscribe()

    def on_identity_change(self, change) -> None:
        if change.is_login:
            self.merge_for(change.current)
        elif change.is_logout:
            self._merged_for = None
            self.store.switch_owner(None)
        elif change.current != change.previous:
            # One customer replaced by another without passing through guest
            self._merged_for = change.current
            self.store.switch_owner(change.current)

    def merge_for(self, user_id) -> list[CartLine]:
        """Merge the guest cart into ``user_id``'s cart and re-scope the store.

        Returns:
            The merged lines now held by the store.
        """
        if self._merged_for is not None and str(self._merged_for) == str(user_id):
            logger.debug("Guest cart already merged for this login", user_id=user_id)
            return self.store.lines

        if self.store.owner is None:
            guest_lines = self.store.lines
        else:
            guest_lines = self.persistence.load(None)

        self.store.switch_owner(user_id)
        self.store.merge_guest_lines(guest_lines)
        self.persistence.delete(None)
        self._merged_for = user_id

        logger.info(
            "Guest cart merged",
            user_id=user_id,
            guest_line_count=len(guest_lines),
            line_count=len(self.store.lines),
        )
        return self.store.lines
