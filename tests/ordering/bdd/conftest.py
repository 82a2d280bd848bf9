"""Shared BDD fixtures and step definitions for the storefront cart."""

import pytest
from ordering.cart.store import CartStore
from ordering.checkout.fake_adapter import FakeOrderService
from ordering.notifier.recording import RecordingNotifier
from ordering.stock.fake_adapter import FakeStockAuthority
from ordering.storefront import Storefront
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def stock_authority():
    return FakeStockAuthority(default_available=10)


@pytest.fixture()
def order_service():
    return FakeOrderService()


@pytest.fixture()
def storefront(stock_authority, order_service):
    return Storefront(
        stock_authority=stock_authority,
        order_service=order_service,
        notifier=RecordingNotifier(),
        tax_rate=0.08,
    )


@pytest.fixture()
def cart(storefront) -> CartStore:
    return storefront.cart


@pytest.fixture()
def outcome():
    """Holder for the last checkout outcome."""
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty guest cart")
def empty_guest_cart(cart):
    assert cart.owner is None
    assert cart.is_empty


@given(parsers.cfparse('the customer "{user_id}" is signed in'))
def customer_signed_in(storefront, user_id):
    storefront.login(user_id)


@given(
    parsers.cfparse("the cart holds {quantity:d} of product {product_id:d} size {size:d} at {price:f}"),
)
def cart_holds(cart, quantity, product_id, size, price):
    cart.add_or_increment(product_id, f"CODE-{product_id}", f"Product {product_id}", size, quantity, price)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("{quantity:d} of product {product_id:d} size {size:d} is added at {price:f}"))
def add_line(cart, quantity, product_id, size, price):
    cart.add_or_increment(product_id, f"CODE-{product_id}", f"Product {product_id}", size, quantity, price)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart has {count:d} line"))
def cart_has_n_lines_singular(cart, count):
    assert len(cart.lines) == count


@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(cart, count):
    assert len(cart.lines) == count


@then(parsers.cfparse("product {product_id:d} size {size:d} has quantity {quantity:d} at {price:f}"))
def line_has_quantity_and_price(cart, product_id, size, quantity, price):
    line = cart.get_line(product_id, size)
    assert line is not None
    assert line.quantity == quantity
    assert line.unit_price == price
    assert line.total_price == pytest.approx(quantity * price)


@then("the cart is empty")
def cart_is_empty(cart):
    assert cart.is_empty
