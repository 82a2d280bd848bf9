"""FastAPI routes for the Storefront: sessions, carts, checkout and orders."""

import os

from fastapi import APIRouter, HTTPException

from ordering.api.schemas import (
    AddLineRequest,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ConfigureServiceRequest,
    LoginRequest,
    NotificationsResponse,
    QuickOrderRequest,
    ResolveConflictsRequest,
    SessionResponse,
    SetQuantityRequest,
    StatusResponse,
    StockLevelRequest,
)
from ordering.checkout import get_order_service
from ordering.checkout.fake_adapter import FakeOrderService
from ordering.checkout.orchestrator import CheckoutInProgressError, CheckoutOutcome
from ordering.checkout.port import CustomerInfo, OrderNotFoundError
from ordering.stock import get_stock_authority
from ordering.stock.fake_adapter import FakeStockAuthority
from ordering.stock.validator import StockConflict
from ordering.storefront import Storefront, get_registry


def _storefront(session_id: str) -> Storefront:
    storefront = get_registry().get(session_id)
    if storefront is None:
        raise HTTPException(status_code=404, detail="Session not found")
    # Adopt cart writes made by other processes before serving the request
    storefront.pump_external_changes()
    return storefront


def _cart_response(storefront: Storefront) -> CartResponse:
    cart = storefront.cart
    return CartResponse(
        owner=str(cart.owner) if cart.owner is not None else None,
        items=[line.to_dict() for line in cart.lines],
        grouped=[group.to_dict() for group in cart.grouped_by_product()],
        summary=cart.summary().to_dict(),
        total_item_count=cart.total_item_count,
        total_price=cart.total_price,
        is_empty=cart.is_empty,
    )


def _checkout_response(outcome: CheckoutOutcome) -> CheckoutResponse:
    return CheckoutResponse(**outcome.to_dict())


def _ensure_not_production(what: str) -> None:
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail=f"{what} configuration not available in production")


# ---------------------------------------------------------------------------
# Session Router
# ---------------------------------------------------------------------------
session_router = APIRouter(prefix="/sessions", tags=["sessions"])


@session_router.post("", status_code=201, response_model=SessionResponse)
async def open_session() -> SessionResponse:
    storefront = get_registry().open()
    return SessionResponse(session_id=storefront.session_id)


@session_router.delete("/{session_id}", response_model=StatusResponse)
async def close_session(session_id: str) -> StatusResponse:
    if not get_registry().close(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return StatusResponse(status="closed")


@session_router.post("/{session_id}/login", response_model=SessionResponse)
async def login(session_id: str, body: LoginRequest) -> SessionResponse:
    storefront = _storefront(session_id)
    storefront.login(body.user_id, body.profile)
    return SessionResponse(session_id=session_id, user_id=body.user_id)


@session_router.post("/{session_id}/logout", response_model=SessionResponse)
async def logout(session_id: str) -> SessionResponse:
    storefront = _storefront(session_id)
    storefront.logout()
    return SessionResponse(session_id=session_id)


@session_router.get("/{session_id}/notifications", response_model=NotificationsResponse)
async def drain_notifications(session_id: str) -> NotificationsResponse:
    storefront = _storefront(session_id)
    return NotificationsResponse(messages=storefront.notifier.drain())


# ---------------------------------------------------------------------------
# Cart Endpoints
# ---------------------------------------------------------------------------
@session_router.get("/{session_id}/cart", response_model=CartResponse)
async def get_cart(session_id: str) -> CartResponse:
    return _cart_response(_storefront(session_id))


@session_router.post("/{session_id}/cart/items", response_model=CartResponse)
async def add_cart_line(session_id: str, body: AddLineRequest) -> CartResponse:
    storefront = _storefront(session_id)
    storefront.cart.add_or_increment(
        product_id=body.product_id,
        product_code=body.product_code,
        product_name=body.product_name,
        size=body.size,
        quantity=body.quantity,
        unit_price=body.unit_price,
        image_url=body.image_url,
    )
    return _cart_response(storefront)


@session_router.post("/{session_id}/cart/quick-order", response_model=CartResponse)
async def quick_order(session_id: str, body: QuickOrderRequest) -> CartResponse:
    storefront = _storefront(session_id)
    storefront.cart.add_sizes(
        body.product_id,
        body.product_code,
        body.product_name,
        [(entry.size, entry.quantity, entry.unit_price) for entry in body.sizes],
        image_url=body.image_url,
    )
    return _cart_response(storefront)


@session_router.put("/{session_id}/cart/items/{product_id}/{size}", response_model=CartResponse)
async def set_cart_line_quantity(session_id: str, product_id: int, size: int, body: SetQuantityRequest) -> CartResponse:
    storefront = _storefront(session_id)
    storefront.cart.set_quantity(product_id, size, body.quantity)
    return _cart_response(storefront)


@session_router.delete("/{session_id}/cart/items/{product_id}/{size}", response_model=CartResponse)
async def remove_cart_line(session_id: str, product_id: int, size: int) -> CartResponse:
    storefront = _storefront(session_id)
    storefront.cart.remove_line(product_id, size)
    return _cart_response(storefront)


@session_router.delete("/{session_id}/cart", response_model=CartResponse)
async def clear_cart(session_id: str) -> CartResponse:
    storefront = _storefront(session_id)
    storefront.cart.clear()
    return _cart_response(storefront)


# ---------------------------------------------------------------------------
# Checkout Endpoints
# ---------------------------------------------------------------------------
@session_router.post("/{session_id}/checkout", response_model=CheckoutResponse)
async def submit_order(session_id: str, body: CheckoutRequest | None = None) -> CheckoutResponse:
    """Validate stock for the cart and submit it as an order.

    Conflicts and failures are reported in the body with status 200; only a
    second submit while one is in flight is rejected with 409.
    """
    storefront = _storefront(session_id)
    customer_info = None
    if body is not None and body.customer_info is not None:
        customer_info = CustomerInfo(**body.customer_info.model_dump())

    try:
        outcome = await storefront.checkout.submit(customer_info)
    except CheckoutInProgressError as exc:
        raise HTTPException(status_code=409, detail="A checkout is already in progress") from exc
    return _checkout_response(outcome)


@session_router.post("/{session_id}/checkout/resolve", response_model=CheckoutResponse)
async def resolve_conflicts(session_id: str, body: ResolveConflictsRequest | None = None) -> CheckoutResponse:
    storefront = _storefront(session_id)
    conflicts = None
    if body is not None and body.conflicts is not None:
        conflicts = [StockConflict(**conflict.model_dump()) for conflict in body.conflicts]

    try:
        outcome = storefront.checkout.resolve_conflicts(conflicts)
    except CheckoutInProgressError as exc:
        raise HTTPException(status_code=409, detail="A checkout is already in progress") from exc
    return _checkout_response(outcome)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}")
async def get_order(order_id: str) -> dict:
    try:
        confirmation = await get_order_service().get_order(order_id)
    except OrderNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return confirmation.to_dict()


# ---------------------------------------------------------------------------
# Fake Collaborator Router (non-production)
# ---------------------------------------------------------------------------
fake_router = APIRouter(prefix="/fakes", tags=["fakes"])


@fake_router.post("/stock/levels", response_model=StatusResponse)
async def set_stock_level(body: StockLevelRequest) -> StatusResponse:
    """Set the availability the FakeStockAuthority reports for one size."""
    _ensure_not_production("Stock")
    authority = get_stock_authority()
    if not isinstance(authority, FakeStockAuthority):
        raise HTTPException(status_code=400, detail="Stock levels only configurable for FakeStockAuthority")

    authority.set_level(body.product_id, body.size, body.available)
    return StatusResponse(status="stock_level_set")


@fake_router.post("/stock/configure", response_model=StatusResponse)
async def configure_stock(body: ConfigureServiceRequest) -> StatusResponse:
    _ensure_not_production("Stock")
    authority = get_stock_authority()
    if not isinstance(authority, FakeStockAuthority):
        raise HTTPException(status_code=400, detail="Stock configuration only available for FakeStockAuthority")

    authority.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return StatusResponse(status="configured")


@fake_router.post("/orders/configure", response_model=StatusResponse)
async def configure_order_service(body: ConfigureServiceRequest) -> StatusResponse:
    _ensure_not_production("Order service")
    service = get_order_service()
    if not isinstance(service, FakeOrderService):
        raise HTTPException(status_code=400, detail="Order service configuration only available for FakeOrderService")

    service.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return StatusResponse(status="configured")
