"""Stock authority factory.

Provides get_stock_authority() / set_stock_authority() /
reset_stock_authority(). Only the fake authority ships with the service;
STOCK_ADAPTER selects it.
"""

from ordering import config
from ordering.stock.fake_adapter import FakeStockAuthority
from ordering.stock.port import StockAuthority

_current_authority: StockAuthority | None = None


def get_stock_authority() -> StockAuthority:
    """Return the current stock authority. Defaults to FakeStockAuthority."""
    global _current_authority
    if _current_authority is None:
        if config.STOCK_ADAPTER != "fake":
            raise ValueError(f"Unknown stock adapter: {config.STOCK_ADAPTER}")
        _current_authority = FakeStockAuthority()
    return _current_authority


def set_stock_authority(authority: StockAuthority) -> None:
    """Override the active stock authority (useful for tests)."""
    global _current_authority
    _current_authority = authority


def reset_stock_authority() -> None:
    """Reset to the default authority."""
    global _current_authority
    _current_authority = None
