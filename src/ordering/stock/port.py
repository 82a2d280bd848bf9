"""Stock authority port (abstract interface).

The stock authority answers how many units of each (product, size) can be
ordered right now. Queries are batched: one call per checkout attempt.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class StockAuthorityError(Exception):
    """The stock authority could not answer (network, outage, bad response)."""


@dataclass(frozen=True)
class StockQuery:
    product_id: int
    size: int
    requested_quantity: int


@dataclass(frozen=True)
class StockLevel:
    product_id: int
    size: int
    available_quantity: int


class StockAuthority(ABC):
    """Abstract stock authority interface."""

    @abstractmethod
    async def check_availability(self, queries: list[StockQuery]) -> list[StockLevel]:
        """Return the available quantity for every queried (product, size).

        Raises:
            StockAuthorityError: if availability cannot be determined.
        """
        ...
