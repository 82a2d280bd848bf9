"""Stock Validator — checks a cart snapshot against the stock authority.

Validation is read-only: it reports conflicts and never touches the cart.
"""

from dataclasses import dataclass, field

import structlog

from ordering.cart.line import CartLine, line_key
from ordering.stock.port import StockAuthority, StockQuery

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockConflict:
    """A line asking for more than the authority can supply."""

    product_id: int
    size: int
    requested_quantity: int
    available_quantity: int

    @property
    def out_of_stock(self) -> bool:
        return self.available_quantity <= 0

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "size": self.size,
            "requestedQuantity": self.requested_quantity,
            "availableStock": self.available_quantity,
        }


@dataclass(frozen=True)
class StockValidation:
    valid: bool
    conflicts: tuple[StockConflict, ...] = field(default_factory=tuple)


class StockValidator:
    def __init__(self, authority: StockAuthority):
        self.authority = authority

    async def validate(self, lines: list[CartLine]) -> StockValidation:
        """Query availability for every line in one batch.

        An empty cart is valid without asking the authority.

        Raises:
            StockAuthorityError: propagated from the authority.
        """
        if not lines:
            return StockValidation(valid=True)

        queries = [
            StockQuery(product_id=line.product_id, size=line.size, requested_quantity=line.quantity) for line in lines
        ]
        levels = await self.authority.check_availability(queries)
        available = {line_key(level.product_id, level.size): level.available_quantity for level in levels}

        conflicts = []
        for query in queries:
            # A size the authority does not report has nothing available
            on_hand = max(available.get(line_key(query.product_id, query.size), 0), 0)
            if query.requested_quantity > on_hand:
                conflicts.append(
                    StockConflict(
                        product_id=query.product_id,
                        size=query.size,
                        requested_quantity=query.requested_quantity,
                        available_quantity=on_hand,
                    )
                )

        if conflicts:
            logger.info("Stock conflicts detected", line_count=len(lines), conflict_count=len(conflicts))
        return StockValidation(valid=not conflicts, conflicts=tuple(conflicts))


def describe_conflicts(conflicts) -> str:
    """User-facing summary of a conflict list."""
    count = len(conflicts)
    out_of_stock = sum(1 for conflict in conflicts if conflict.out_of_stock)
    noun = "item" if count == 1 else "items"
    message = f"{count} {noun} in your cart"
    if out_of_stock:
        message += f" ({out_of_stock} out of stock)"
    return f"{message} cannot be ordered in the requested quantities."
