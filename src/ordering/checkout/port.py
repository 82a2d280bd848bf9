"""Order service port (abstract interface).

The order service turns a validated cart snapshot into an order and
returns the bank-transfer details the customer pays with. Every request
carries an idempotency key; a service that has already accepted a key
returns the original confirmation instead of creating a second order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from ordering.cart.line import CartLine
from ordering.cart.views import CartSummary


class OrderSubmissionError(Exception):
    """The order service rejected the order or could not be reached."""


class OrderNotFoundError(OrderSubmissionError):
    """No order exists with the requested id."""


@dataclass(frozen=True)
class CustomerInfo:
    email: str = ""
    contact_name: str = ""
    phone: str = ""
    company_name: str = ""
    vat_number: str = ""

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "contactName": self.contact_name,
            "phone": self.phone,
            "companyName": self.company_name,
            "vatNumber": self.vat_number,
        }


@dataclass(frozen=True)
class BankDetails:
    bank_name: str
    account_holder: str
    iban: str
    swift: str

    def to_dict(self) -> dict:
        return {
            "bankName": self.bank_name,
            "accountHolder": self.account_holder,
            "iban": self.iban,
            "swift": self.swift,
        }


@dataclass(frozen=True)
class OrderRequest:
    """Everything the order service needs to create one order."""

    owner: str | None
    lines: tuple[CartLine, ...]
    summary: CartSummary
    idempotency_key: str
    customer_info: CustomerInfo = field(default_factory=CustomerInfo)


@dataclass(frozen=True)
class OrderConfirmation:
    """Result of a successful order submission."""

    order_id: str
    status: str
    payment_reference: str
    amount: float
    created_at: datetime
    bank_details: BankDetails | None = None
    payment_method: str = "bank_transfer"

    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "status": self.status,
            "paymentReference": self.payment_reference,
            "amount": self.amount,
            "createdAt": self.created_at.isoformat(),
            "paymentMethod": self.payment_method,
            "bankDetails": self.bank_details.to_dict() if self.bank_details else None,
        }


class OrderService(ABC):
    """Abstract order service interface."""

    @abstractmethod
    async def create_order(self, request: OrderRequest) -> OrderConfirmation:
        """Create an order from a cart snapshot.

        Raises:
            OrderSubmissionError: if the order was not created.
        """
        ...

    @abstractmethod
    async def get_order(self, order_id: str) -> OrderConfirmation:
        """Look up a previously created order.

        Raises:
            OrderNotFoundError: if no such order exists.
        """
        ...
