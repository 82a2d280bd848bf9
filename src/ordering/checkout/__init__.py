"""Order service factory.

Provides get_order_service() / set_order_service() / reset_order_service().
Only the fake service ships with the storefront; ORDER_SERVICE_ADAPTER
selects it.
"""

from ordering import config
from ordering.checkout.fake_adapter import FakeOrderService
from ordering.checkout.port import OrderService

_current_service: OrderService | None = None


def get_order_service() -> OrderService:
    """Return the current order service. Defaults to FakeOrderService."""
    global _current_service
    if _current_service is None:
        if config.ORDER_SERVICE_ADAPTER != "fake":
            raise ValueError(f"Unknown order service adapter: {config.ORDER_SERVICE_ADAPTER}")
        _current_service = FakeOrderService()
    return _current_service


def set_order_service(service: OrderService) -> None:
    """Override the active order service (useful for tests)."""
    global _current_service
    _current_service = service


def reset_order_service() -> None:
    """Reset to the default service."""
    global _current_service
    _current_service = None
