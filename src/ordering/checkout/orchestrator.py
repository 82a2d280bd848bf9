"""Order Submission Orchestrator — validate stock, submit, clear on success.

State machine::

    Idle -> Validating -> Conflicted
                       -> Submitting -> Succeeded
                                     -> Failed

The cart is snapshotted when ``submit()`` is called; the snapshot is what
gets validated and sent. The live cart may keep changing while the
collaborators are awaited. On success the submitted quantities come out
of the cart: when nothing changed the cart is cleared, otherwise lines
added mid-flight stay.

Only one attempt runs at a time per orchestrator. Retrying an unchanged
snapshot after a failure sends the same idempotency key, so the order
service can recognize a duplicate.
"""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.exceptions import InvalidOperationError

from ordering.cart.line import CartLine, line_key
from ordering.cart.views import summarize
from ordering.checkout.port import (
    CustomerInfo,
    OrderConfirmation,
    OrderRequest,
    OrderService,
    OrderSubmissionError,
)
from ordering.notifier import get_notifier
from ordering.notifier.port import NotificationLevel, Notifier
from ordering.stock.port import StockAuthorityError
from ordering.stock.validator import StockConflict, StockValidator, describe_conflicts

logger = structlog.get_logger(__name__)

AUTHENTICATION_REQUIRED = "Authentication required"
CART_EMPTY = "Cart is empty"
STOCK_CHECK_FAILED = "Failed to validate stock availability. Please try again."
SUBMISSION_FAILED = "Failed to submit order. Please try again."
ORDER_SUBMITTED = "Order submitted successfully!"
CONFLICTS_RESOLVED = "Cart updated to resolve stock conflicts"


class CheckoutStatus(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CONFLICTED = "conflicted"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


BUSY_STATUSES = frozenset({CheckoutStatus.VALIDATING, CheckoutStatus.SUBMITTING})


class CheckoutInProgressError(InvalidOperationError):
    """A checkout attempt is already validating or submitting."""


@dataclass(frozen=True)
class CheckoutOutcome:
    status: CheckoutStatus
    confirmation: OrderConfirmation | None = None
    conflicts: tuple[StockConflict, ...] = field(default_factory=tuple)
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "confirmation": self.confirmation.to_dict() if self.confirmation else None,
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
            "error": self.error,
        }


def idempotency_key_for(owner, lines: list[CartLine], generation: int = 0) -> str:
    """Stable key for one owner's cart snapshot.

    ``generation`` separates successive orders that happen to contain the
    same lines.
    """
    payload = json.dumps(
        {
            "owner": str(owner),
            "generation": generation,
            "lines": sorted([line.product_id, line.size, line.quantity, line.unit_price] for line in lines),
        },
        sort_keys=True,
    )
    return f"checkout-{hashlib.sha256(payload.encode()).hexdigest()[:32]}"


class CheckoutOrchestrator:
    def __init__(
        self,
        cart_store,
        identity,
        validator: StockValidator,
        order_service: OrderService,
        notifier: Notifier | None = None,
    ):
        self.cart_store = cart_store
        self.identity = identity
        self.validator = validator
        self.order_service = order_service
        self.notifier = notifier or get_notifier()

        self.status = CheckoutStatus.IDLE
        self.conflicts: tuple[StockConflict, ...] = ()
        self.last_outcome: CheckoutOutcome | None = None
        self._generation = 0

    @property
    def is_busy(self) -> bool:
        return self.status in BUSY_STATUSES

    async def submit(self, customer_info: CustomerInfo | None = None) -> CheckoutOutcome:
        """Run one checkout attempt.

        Raises:
            CheckoutInProgressError: if an attempt is already in flight.
        """
        if self.is_busy:
            raise CheckoutInProgressError({"checkout": ["A checkout is already in progress"]})

        owner = self.identity.current_user_id
        snapshot = self.cart_store.lines

        if owner is None:
            return self._fail(AUTHENTICATION_REQUIRED, notify=AUTHENTICATION_REQUIRED)
        if not snapshot:
            return self._fail(CART_EMPTY, notify=CART_EMPTY)

        self.conflicts = ()
        self._transition(CheckoutStatus.VALIDATING, owner=owner, line_count=len(snapshot))
        try:
            return await self._attempt(owner, snapshot, customer_info)
        finally:
            # Cancelled while awaiting a collaborator
            if self.is_busy:
                self._transition(CheckoutStatus.FAILED, owner=owner, error="cancelled")

    async def _attempt(self, owner, snapshot: list[CartLine], customer_info: CustomerInfo | None) -> CheckoutOutcome:
        try:
            validation = await self.validator.validate(snapshot)
        except StockAuthorityError as exc:
            logger.warning("Stock validation failed", owner=owner, error=str(exc))
            return self._fail(STOCK_CHECK_FAILED, notify=STOCK_CHECK_FAILED)
        except Exception as exc:
            logger.error("Stock validation raised", owner=owner, error=str(exc), exc_info=True)
            return self._fail(STOCK_CHECK_FAILED, notify=STOCK_CHECK_FAILED)

        if not validation.valid:
            return self._conflicted(validation.conflicts)

        self._transition(CheckoutStatus.SUBMITTING, owner=owner)
        request = OrderRequest(
            owner=str(owner),
            lines=tuple(snapshot),
            summary=summarize(snapshot, tax_rate=self.cart_store.tax_rate),
            idempotency_key=idempotency_key_for(owner, snapshot, self._generation),
            customer_info=customer_info or CustomerInfo(),
        )
        try:
            confirmation = await self.order_service.create_order(request)
        except OrderSubmissionError as exc:
            logger.warning(
                "Order submission failed",
                owner=owner,
                idempotency_key=request.idempotency_key,
                error=str(exc),
            )
            return self._fail(str(exc) or SUBMISSION_FAILED, notify=SUBMISSION_FAILED)
        except Exception as exc:
            logger.error(
                "Order service raised",
                owner=owner,
                idempotency_key=request.idempotency_key,
                error=str(exc),
                exc_info=True,
            )
            return self._fail(SUBMISSION_FAILED, notify=SUBMISSION_FAILED)

        self._generation += 1
        self._remove_submitted(owner, snapshot)
        self._transition(
            CheckoutStatus.SUCCEEDED,
            owner=owner,
            order_id=confirmation.order_id,
            amount=confirmation.amount,
        )
        self.notifier.notify(NotificationLevel.SUCCESS, ORDER_SUBMITTED)
        return self._finish(CheckoutOutcome(status=CheckoutStatus.SUCCEEDED, confirmation=confirmation))

    def resolve_conflicts(self, conflicts: list[StockConflict] | None = None) -> CheckoutOutcome:
        """Clamp conflicting lines to what is available ("fix all issues").

        A line with nothing available is removed. Passing a subset resolves
        only those conflicts; the checkout returns to Idle once none remain.
        """
        if self.is_busy:
            raise CheckoutInProgressError({"checkout": ["A checkout is already in progress"]})

        targets = list(self.conflicts if conflicts is None else conflicts)
        for conflict in targets:
            line = self.cart_store.get_line(conflict.product_id, conflict.size)
            if line is None:
                continue
            if conflict.available_quantity <= 0:
                self.cart_store.remove_line(conflict.product_id, conflict.size)
            elif line.quantity > conflict.available_quantity:
                # Never raise a quantity the shopper lowered after validation
                self.cart_store.set_quantity(conflict.product_id, conflict.size, conflict.available_quantity)

        resolved = {line_key(conflict.product_id, conflict.size) for conflict in targets}
        self.conflicts = tuple(
            conflict
            for conflict in self.conflicts
            if line_key(conflict.product_id, conflict.size) not in resolved
        )

        if targets:
            self.notifier.notify(NotificationLevel.INFO, CONFLICTS_RESOLVED)

        if self.conflicts:
            return self._finish(CheckoutOutcome(status=CheckoutStatus.CONFLICTED, conflicts=self.conflicts))

        self._transition(CheckoutStatus.IDLE, resolved_count=len(targets))
        return self._finish(CheckoutOutcome(status=CheckoutStatus.IDLE))

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _transition(self, status: CheckoutStatus, **context) -> None:
        logger.info("Checkout transition", from_status=self.status.value, to_status=status.value, **context)
        self.status = status

    def _finish(self, outcome: CheckoutOutcome) -> CheckoutOutcome:
        self.last_outcome = outcome
        return outcome

    def _fail(self, error: str, notify: str) -> CheckoutOutcome:
        self._transition(CheckoutStatus.FAILED, error=error)
        self.notifier.notify(NotificationLevel.ERROR, notify)
        return self._finish(CheckoutOutcome(status=CheckoutStatus.FAILED, error=error))

    def _conflicted(self, conflicts: tuple[StockConflict, ...]) -> CheckoutOutcome:
        self.conflicts = conflicts
        self._transition(CheckoutStatus.CONFLICTED, conflict_count=len(conflicts))
        self.notifier.notify(NotificationLevel.WARNING, describe_conflicts(conflicts))
        return self._finish(CheckoutOutcome(status=CheckoutStatus.CONFLICTED, conflicts=conflicts))

    def _remove_submitted(self, owner, snapshot: list[CartLine]) -> None:
        if str(self.cart_store.owner) != str(owner):
            logger.warning(
                "Cart owner changed during checkout, leaving cart untouched",
                submitted_for=owner,
                current_owner=self.cart_store.owner,
            )
            return

        if self.cart_store.lines == snapshot:
            self.cart_store.clear(reason="order_submitted")
        else:
            self.cart_store.deduct(snapshot)
            logger.info("Cart changed during checkout, kept newer lines", owner=owner)
