"""Application tests for the order submission orchestrator."""

import asyncio
from types import SimpleNamespace

import pytest
from ordering.cart.store import CartStore
from ordering.checkout.fake_adapter import FakeOrderService
from ordering.checkout.orchestrator import (
    CheckoutInProgressError,
    CheckoutOrchestrator,
    CheckoutStatus,
    idempotency_key_for,
)
from ordering.checkout.port import CustomerInfo
from ordering.identity.session import SessionIdentity
from ordering.stock.fake_adapter import FakeStockAuthority
from ordering.stock.validator import StockValidator


class GatedStockAuthority(FakeStockAuthority):
    """Holds every availability query until the test releases it."""

    def __init__(self):
        super().__init__(default_available=10)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def check_availability(self, queries):
        self.entered.set()
        await self.release.wait()
        return await super().check_availability(queries)


class UnreachableOrderService(FakeOrderService):
    async def create_order(self, request):
        self.calls.append(request)
        raise ConnectionError("Connection reset by peer")


class UnreachableStockAuthority(FakeStockAuthority):
    async def check_availability(self, queries):
        raise OSError("Network is unreachable")


def _add(store, product_id=1, size=42, quantity=1, unit_price=100.0):
    store.add_or_increment(product_id, f"CODE-{product_id}", f"Product {product_id}", size, quantity, unit_price)


def _build(persistence, notifier, user_id="42", authority=None):
    identity = SessionIdentity(user_id=user_id)
    store = CartStore(persistence, owner=user_id, tax_rate=0.08)
    authority = authority or FakeStockAuthority(default_available=10)
    service = FakeOrderService()
    orchestrator = CheckoutOrchestrator(store, identity, StockValidator(authority), service, notifier=notifier)
    return SimpleNamespace(
        identity=identity,
        store=store,
        authority=authority,
        service=service,
        orchestrator=orchestrator,
        notifier=notifier,
    )


@pytest.fixture()
def env(persistence, notifier):
    return _build(persistence, notifier)


def _messages(notifier, level):
    return [entry["message"] for entry in notifier.messages if entry["level"] == level]


class TestSuccessfulSubmission:
    @pytest.mark.asyncio
    async def test_success_clears_cart(self, env):
        _add(env.store, size=42, quantity=2)
        _add(env.store, size=43, quantity=1)

        outcome = await env.orchestrator.submit()

        assert outcome.status == CheckoutStatus.SUCCEEDED
        assert outcome.confirmation.order_id.startswith("ORD-")
        assert outcome.confirmation.payment_reference == f"PAY-{outcome.confirmation.order_id}"
        assert outcome.confirmation.amount == 324.0
        assert env.store.is_empty
        assert env.orchestrator.status == CheckoutStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_request_carries_snapshot_and_summary(self, env):
        _add(env.store, quantity=2)
        info = CustomerInfo(email="buyer@shoes.example", company_name="Shoe Hub")

        await env.orchestrator.submit(info)

        request = env.service.calls[0]
        assert request.owner == "42"
        assert [line.quantity for line in request.lines] == [2]
        assert request.summary.subtotal == 200.0
        assert request.summary.total == 216.0
        assert request.customer_info == info
        assert request.idempotency_key.startswith("checkout-")

    @pytest.mark.asyncio
    async def test_success_notification(self, env):
        _add(env.store)
        await env.orchestrator.submit()
        assert _messages(env.notifier, "success") == ["Order submitted successfully!"]

    @pytest.mark.asyncio
    async def test_confirmation_has_bank_details(self, env):
        _add(env.store)
        outcome = await env.orchestrator.submit()
        details = outcome.confirmation.bank_details
        assert details.bank_name == "PKO Bank Polski"
        assert details.swift == "BPKOPLPW"
        assert outcome.confirmation.status == "pending"


class TestFailedSubmission:
    @pytest.mark.asyncio
    async def test_failure_preserves_cart(self, env):
        _add(env.store, quantity=2)
        before = env.store.lines
        env.service.configure(should_succeed=False, failure_reason="Upstream timeout")

        outcome = await env.orchestrator.submit()

        assert outcome.status == CheckoutStatus.FAILED
        assert outcome.error == "Upstream timeout"
        assert env.store.lines == before
        assert _messages(env.notifier, "error") == ["Failed to submit order. Please try again."]

    @pytest.mark.asyncio
    async def test_guest_cannot_submit(self, persistence, notifier):
        env = _build(persistence, notifier, user_id=None)
        _add(env.store)

        outcome = await env.orchestrator.submit()

        assert outcome.status == CheckoutStatus.FAILED
        assert outcome.error == "Authentication required"
        assert env.authority.calls == []
        assert env.service.calls == []

    @pytest.mark.asyncio
    async def test_empty_cart_cannot_submit(self, env):
        outcome = await env.orchestrator.submit()
        assert outcome.status == CheckoutStatus.FAILED
        assert outcome.error == "Cart is empty"
        assert env.authority.calls == []

    @pytest.mark.asyncio
    async def test_stock_authority_failure(self, env):
        _add(env.store)
        env.authority.configure(should_succeed=False)

        outcome = await env.orchestrator.submit()

        assert outcome.status == CheckoutStatus.FAILED
        assert outcome.error == "Failed to validate stock availability. Please try again."
        assert env.service.calls == []
        assert not env.store.is_empty

    @pytest.mark.asyncio
    async def test_retry_after_failure_succeeds(self, env):
        _add(env.store)
        env.service.configure(should_succeed=False)
        await env.orchestrator.submit()

        env.service.configure(should_succeed=True)
        outcome = await env.orchestrator.submit()
        assert outcome.status == CheckoutStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_unexpected_service_error_fails_and_allows_retry(self, env):
        _add(env.store, quantity=2)
        env.orchestrator.order_service = UnreachableOrderService()

        outcome = await env.orchestrator.submit()

        assert outcome.status == CheckoutStatus.FAILED
        assert outcome.error == "Failed to submit order. Please try again."
        assert env.orchestrator.status == CheckoutStatus.FAILED
        assert env.store.get_line(1, 42).quantity == 2

        env.orchestrator.order_service = env.service
        outcome = await env.orchestrator.submit()
        assert outcome.status == CheckoutStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_unexpected_stock_error_fails(self, persistence, notifier):
        env = _build(persistence, notifier, authority=UnreachableStockAuthority())
        _add(env.store)

        outcome = await env.orchestrator.submit()

        assert outcome.status == CheckoutStatus.FAILED
        assert outcome.error == "Failed to validate stock availability. Please try again."
        assert not env.orchestrator.is_busy
        assert env.service.calls == []


class TestConflicts:
    @pytest.mark.asyncio
    async def test_conflicts_stop_submission(self, env):
        env.authority.set_level(1, 42, 3)
        _add(env.store, quantity=5)

        outcome = await env.orchestrator.submit()

        assert outcome.status == CheckoutStatus.CONFLICTED
        assert len(outcome.conflicts) == 1
        conflict = outcome.conflicts[0]
        assert (conflict.product_id, conflict.size) == (1, 42)
        assert conflict.requested_quantity == 5
        assert conflict.available_quantity == 3
        assert env.service.calls == []
        assert env.store.get_line(1, 42).quantity == 5

    @pytest.mark.asyncio
    async def test_conflict_warning(self, env):
        env.authority.set_level(1, 42, 0)
        _add(env.store, quantity=5)
        await env.orchestrator.submit()
        assert _messages(env.notifier, "warning") == [
            "1 item in your cart (1 out of stock) cannot be ordered in the requested quantities."
        ]

    @pytest.mark.asyncio
    async def test_resolve_clamps_and_removes(self, env):
        env.authority.set_level(1, 42, 3)
        env.authority.set_level(2, 40, 0)
        _add(env.store, quantity=5)
        _add(env.store, product_id=2, size=40, quantity=2)
        _add(env.store, product_id=3, size=41, quantity=1)
        await env.orchestrator.submit()

        outcome = env.orchestrator.resolve_conflicts()

        assert outcome.status == CheckoutStatus.IDLE
        assert env.store.get_line(1, 42).quantity == 3
        assert env.store.get_line(2, 40) is None
        assert env.store.get_line(3, 41).quantity == 1
        assert "Cart updated to resolve stock conflicts" in _messages(env.notifier, "info")

    @pytest.mark.asyncio
    async def test_resolve_one_conflict_keeps_the_rest(self, env):
        env.authority.set_level(1, 42, 3)
        env.authority.set_level(2, 40, 0)
        _add(env.store, quantity=5)
        _add(env.store, product_id=2, size=40, quantity=2)
        first = (await env.orchestrator.submit()).conflicts[0]

        outcome = env.orchestrator.resolve_conflicts([first])

        assert outcome.status == CheckoutStatus.CONFLICTED
        assert len(outcome.conflicts) == 1

    @pytest.mark.asyncio
    async def test_resolve_never_raises_a_lowered_quantity(self, env):
        env.authority.set_level(1, 42, 3)
        _add(env.store, quantity=5)
        await env.orchestrator.submit()
        env.store.set_quantity(1, 42, 2)

        outcome = env.orchestrator.resolve_conflicts()

        assert outcome.status == CheckoutStatus.IDLE
        assert env.store.get_line(1, 42).quantity == 2

    @pytest.mark.asyncio
    async def test_submit_after_resolving(self, env):
        env.authority.set_level(1, 42, 3)
        _add(env.store, quantity=5)
        await env.orchestrator.submit()
        env.orchestrator.resolve_conflicts()

        outcome = await env.orchestrator.submit()
        assert outcome.status == CheckoutStatus.SUCCEEDED
        assert env.service.calls[0].lines[0].quantity == 3


class TestIdempotency:
    @pytest.mark.asyncio
    async def test_retry_reuses_key(self, env):
        _add(env.store)
        env.service.configure(should_succeed=False)
        await env.orchestrator.submit()
        env.service.configure(should_succeed=True)
        await env.orchestrator.submit()

        keys = [request.idempotency_key for request in env.service.calls]
        assert keys[0] == keys[1]

    @pytest.mark.asyncio
    async def test_changed_cart_gets_new_key(self, env):
        _add(env.store)
        env.service.configure(should_succeed=False)
        await env.orchestrator.submit()
        _add(env.store)
        await env.orchestrator.submit()

        keys = [request.idempotency_key for request in env.service.calls]
        assert keys[0] != keys[1]

    @pytest.mark.asyncio
    async def test_next_order_with_same_lines_is_a_new_order(self, env):
        _add(env.store)
        first = await env.orchestrator.submit()
        _add(env.store)
        second = await env.orchestrator.submit()

        assert first.confirmation.order_id != second.confirmation.order_id

    def test_key_ignores_line_order(self, env):
        _add(env.store, size=42)
        _add(env.store, size=43)
        lines = env.store.lines
        assert idempotency_key_for("42", lines) == idempotency_key_for("42", list(reversed(lines)))


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_second_submit_while_validating_is_rejected(self, persistence, notifier):
        env = _build(persistence, notifier, authority=GatedStockAuthority())
        _add(env.store)

        task = asyncio.create_task(env.orchestrator.submit())
        await env.authority.entered.wait()
        assert env.orchestrator.status == CheckoutStatus.VALIDATING

        with pytest.raises(CheckoutInProgressError):
            await env.orchestrator.submit()

        env.authority.release.set()
        outcome = await task
        assert outcome.status == CheckoutStatus.SUCCEEDED
        assert len(env.service.calls) == 1

    @pytest.mark.asyncio
    async def test_lines_added_mid_flight_survive(self, persistence, notifier):
        env = _build(persistence, notifier, authority=GatedStockAuthority())
        _add(env.store, quantity=2)

        task = asyncio.create_task(env.orchestrator.submit())
        await env.authority.entered.wait()
        _add(env.store, quantity=1)
        _add(env.store, product_id=2, size=40)
        env.authority.release.set()
        outcome = await task

        assert outcome.status == CheckoutStatus.SUCCEEDED
        assert [line.quantity for line in env.service.calls[0].lines] == [2]
        assert env.store.get_line(1, 42).quantity == 1
        assert env.store.get_line(2, 40).quantity == 1

    @pytest.mark.asyncio
    async def test_resolve_while_validating_is_rejected(self, persistence, notifier):
        env = _build(persistence, notifier, authority=GatedStockAuthority())
        _add(env.store)

        task = asyncio.create_task(env.orchestrator.submit())
        await env.authority.entered.wait()
        with pytest.raises(CheckoutInProgressError):
            env.orchestrator.resolve_conflicts()

        env.authority.release.set()
        await task

    @pytest.mark.asyncio
    async def test_cancelled_submit_releases_checkout(self, persistence, notifier):
        env = _build(persistence, notifier, authority=GatedStockAuthority())
        _add(env.store)

        task = asyncio.create_task(env.orchestrator.submit())
        await env.authority.entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert env.orchestrator.status == CheckoutStatus.FAILED
        assert not env.store.is_empty

        env.authority.release.set()
        outcome = await env.orchestrator.submit()
        assert outcome.status == CheckoutStatus.SUCCEEDED
