"""Configurable fake order service for development and testing.

Accepts any order with a signed-in owner, at least one line and a
positive total, and answers with bank-transfer payment details. Accepted
orders are kept in memory so repeated idempotency keys and order lookups
behave like a real service.
"""

import secrets
import string
import time
from datetime import UTC, datetime

from ordering.checkout.port import (
    BankDetails,
    OrderConfirmation,
    OrderNotFoundError,
    OrderRequest,
    OrderService,
    OrderSubmissionError,
)

MERCHANT_BANK_DETAILS = BankDetails(
    bank_name="PKO Bank Polski",
    account_holder="MANDRAIME Sp. z o.o.",
    iban="PL61 1020 1026 0000 1702 0270 0001",
    swift="BPKOPLPW",
)

_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


class FakeOrderService(OrderService):
    """Configurable fake order service."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Order service unavailable"
        self.calls: list[OrderRequest] = []
        self.orders: dict[str, OrderConfirmation] = {}
        self._by_idempotency_key: dict[str, str] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Order service unavailable") -> None:
        """Configure service behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def create_order(self, request: OrderRequest) -> OrderConfirmation:
        self.calls.append(request)

        if not request.owner:
            raise OrderSubmissionError("Authentication required")
        if not request.lines:
            raise OrderSubmissionError("Cart is empty")
        if request.summary.total <= 0:
            raise OrderSubmissionError("Invalid order total")

        existing = self._by_idempotency_key.get(request.idempotency_key)
        if existing is not None:
            return self.orders[existing]

        if not self.should_succeed:
            raise OrderSubmissionError(self.failure_reason)

        order_id = generate_order_id()
        confirmation = OrderConfirmation(
            order_id=order_id,
            status="pending",
            payment_reference=f"PAY-{order_id}",
            amount=request.summary.total,
            created_at=datetime.now(UTC),
            bank_details=MERCHANT_BANK_DETAILS,
        )
        self.orders[order_id] = confirmation
        self._by_idempotency_key[request.idempotency_key] = order_id
        return confirmation

    async def get_order(self, order_id: str) -> OrderConfirmation:
        try:
            return self.orders[order_id]
        except KeyError:
            raise OrderNotFoundError("Order not found") from None

    def reset(self) -> None:
        self.calls.clear()
        self.orders.clear()
        self._by_idempotency_key.clear()
        self.should_succeed = True
        self.failure_reason = "Order service unavailable"
