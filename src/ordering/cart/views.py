"""Read-only views derived from cart lines, recomputed on every read and never stored."""

from dataclasses import dataclass, field

from ordering import config
from ordering.cart.line import CartLine
from ordering.shared.money import sum_amounts, sum_quantities, tax_for


@dataclass(frozen=True)
class SizeQuantity:
    size: int
    quantity: int
    line_total: float


@dataclass(frozen=True)
class GroupedProduct:
    """All sizes of one product in the cart."""

    product_id: int
    product_code: str
    product_name: str
    unit_price: float
    sizes: tuple[SizeQuantity, ...] = field(default_factory=tuple)
    image_url: str | None = None

    @property
    def total_quantity(self) -> int:
        return sum_quantities(entry.quantity for entry in self.sizes)

    @property
    def total_price(self) -> float:
        return sum_amounts(entry.line_total for entry in self.sizes)

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productCode": self.product_code,
            "productName": self.product_name,
            "unitPrice": self.unit_price,
            "imageUrl": self.image_url,
            "sizes": [
                {"size": entry.size, "quantity": entry.quantity, "totalPrice": entry.line_total}
                for entry in self.sizes
            ],
            "totalQuantity": self.total_quantity,
            "totalPrice": self.total_price,
        }


@dataclass(frozen=True)
class CartSummary:
    subtotal: float
    tax: float
    shipping: float
    total: float
    item_count: int

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "total": self.total,
            "itemCount": self.item_count,
        }


def group_by_product(lines: list[CartLine]) -> list[GroupedProduct]:
    """Bucket lines by product, sizes ascending, products by display name.

    The bucket's display fields come from the first line seen for the product.
    """
    buckets: dict[int, dict] = {}
    for line in lines:
        bucket = buckets.setdefault(
            line.product_id,
            {
                "product_id": line.product_id,
                "product_code": line.product_code,
                "product_name": line.product_name,
                "unit_price": line.unit_price,
                "image_url": line.image_url,
                "sizes": [],
            },
        )
        bucket["sizes"].append(SizeQuantity(size=line.size, quantity=line.quantity, line_total=line.total_price))

    groups = [
        GroupedProduct(
            product_id=bucket["product_id"],
            product_code=bucket["product_code"],
            product_name=bucket["product_name"],
            unit_price=bucket["unit_price"],
            image_url=bucket["image_url"],
            sizes=tuple(sorted(bucket["sizes"], key=lambda entry: entry.size)),
        )
        for bucket in buckets.values()
    ]
    return sorted(groups, key=lambda group: group.product_name.casefold())


def summarize(
    lines: list[CartLine],
    tax_rate: float | None = None,
    shipping: float | None = None,
) -> CartSummary:
    """Checkout summary: subtotal, fixed-rate tax, shipping (free for B2B), total, item count."""
    rate = config.CART_TAX_RATE if tax_rate is None else tax_rate
    shipping_cost = config.CART_SHIPPING_COST if shipping is None else shipping

    subtotal = sum_amounts(line.total_price for line in lines)
    tax = tax_for(subtotal, rate)
    return CartSummary(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping_cost,
        total=sum_amounts([subtotal, tax, shipping_cost]),
        item_count=sum_quantities(line.quantity for line in lines),
    )
