"""CartLine — immutable snapshot of one (product, size) line in a cart.

Snapshots are what leaves the aggregate: they are persisted, merged,
stock-checked and submitted. ``total_price`` is always derived, never
stored, so it cannot drift from ``quantity`` and ``unit_price``.
"""

import math
from dataclasses import dataclass

from ordering.shared.money import line_total

LineKey = tuple[int, int]


def line_key(product_id: int, size: int) -> LineKey:
    return (int(product_id), int(size))


@dataclass(frozen=True)
class CartLine:
    product_id: int
    product_code: str
    product_name: str
    size: int
    quantity: int
    unit_price: float
    image_url: str | None = None

    @property
    def key(self) -> LineKey:
        return line_key(self.product_id, self.size)

    @property
    def total_price(self) -> float:
        return line_total(self.unit_price, self.quantity)

    def with_quantity(self, quantity: int) -> "CartLine":
        return CartLine(
            product_id=self.product_id,
            product_code=self.product_code,
            product_name=self.product_name,
            size=self.size,
            quantity=quantity,
            unit_price=self.unit_price,
            image_url=self.image_url,
        )

    def to_dict(self) -> dict:
        data = {
            "productId": self.product_id,
            "productCode": self.product_code,
            "productName": self.product_name,
            "size": self.size,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
        }
        if self.image_url:
            data["imageUrl"] = self.image_url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Build a line from its stored form.

        ``totalPrice`` in the payload is ignored; it is recomputed. Raises
        ``KeyError``/``TypeError``/``ValueError``/``OverflowError`` for unusable
        payloads.
        """
        quantity = int(data["quantity"])
        unit_price = float(data["unitPrice"])
        if quantity < 1:
            raise ValueError(f"Cart line quantity must be positive, got {quantity}")
        if not math.isfinite(unit_price) or unit_price < 0:
            raise ValueError(f"Cart line unit price must be a non-negative number, got {unit_price}")
        return cls(
            product_id=int(data["productId"]),
            product_code=str(data.get("productCode", "")),
            product_name=str(data.get("productName", "")),
            size=int(data["size"]),
            quantity=quantity,
            unit_price=unit_price,
            image_url=data.get("imageUrl"),
        )
