"""Configurable fake stock authority for development and testing.

Every size has ``default_available`` units unless a level is set
explicitly. The authority can be switched to fail, to exercise the
checkout's error path.
"""

from ordering import config
from ordering.stock.port import StockAuthority, StockAuthorityError, StockLevel, StockQuery


class FakeStockAuthority(StockAuthority):
    """Configurable fake stock authority."""

    def __init__(self, default_available: int | None = None) -> None:
        self.default_available: int = (
            config.FAKE_STOCK_DEFAULT_AVAILABLE if default_available is None else default_available
        )
        self.levels: dict[tuple[int, int], int] = {}
        self.should_succeed: bool = True
        self.failure_reason: str = "Stock service unavailable"
        self.calls: list[list[StockQuery]] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Stock service unavailable") -> None:
        """Configure authority behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def set_level(self, product_id: int, size: int, available: int) -> None:
        self.levels[(int(product_id), int(size))] = available

    def available_for(self, product_id: int, size: int) -> int:
        return self.levels.get((int(product_id), int(size)), self.default_available)

    async def check_availability(self, queries: list[StockQuery]) -> list[StockLevel]:
        self.calls.append(list(queries))
        if not self.should_succeed:
            raise StockAuthorityError(self.failure_reason)

        return [
            StockLevel(
                product_id=query.product_id,
                size=query.size,
                available_quantity=self.available_for(query.product_id, query.size),
            )
            for query in queries
        ]

    def reset(self) -> None:
        self.levels.clear()
        self.calls.clear()
        self.should_succeed = True
        self.failure_reason = "Stock service unavailable"
