"""Money and quantity arithmetic for cart lines and summaries.

Prices travel as floats (the domain stores them in ``Float`` fields) but
every sum and product is computed in ``Decimal`` so repeated additions do
not drift. Amounts are converted through ``str`` to keep the decimal
representation the caller wrote (``0.1`` stays ``0.1``).
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_decimal(amount: float | int | str | Decimal) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def quantize(amount: float | int | Decimal) -> float:
    """Round an amount half-up to whole cents."""
    return float(to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP))


def line_total(unit_price: float, quantity: int) -> float:
    """Total for one cart line: unit price times quantity."""
    return float(to_decimal(unit_price) * quantity)


def sum_amounts(amounts: Iterable[float]) -> float:
    return float(sum((to_decimal(amount) for amount in amounts), Decimal(0)))


def sum_quantities(quantities: Iterable[int]) -> int:
    return sum(quantities, 0)


def tax_for(subtotal: float, rate: float) -> float:
    """Tax owed on ``subtotal`` at a fixed percentage ``rate`` (0.08 == 8%)."""
    return quantize(to_decimal(subtotal) * to_decimal(rate))
