"""Shared BDD fixtures and step definitions for the Checkout domain."""

import pytest
from checkout.cart.pricing import snapshot_cart
from checkout.catalog.product import Product
from checkout.coupon.coupon import Coupon
from checkout.order.history import find_order
from checkout.order.intake import place_order
from protean import current_domain
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def state():
    """Container for what the When steps produced."""
    return {"order": None, "confirmation": None, "error": None, "product": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a flat coupon "{code}" worth {value:g} with a minimum order of {minimum:g}'))
def _flat_coupon(make_coupon, code, value, minimum):
    make_coupon(code, discount_type="flat", discount_value=value, min_order_value=minimum)


@given(parsers.cfparse('a first-order coupon "{code}" worth {value:g}'))
def _first_order_coupon(make_coupon, code, value):
    make_coupon(code, discount_type="flat", discount_value=value, usage_type="first-time-user-only")


@given(parsers.cfparse('customer "{customer}" has {quantity:d} units of a product priced {price:g} in the cart'))
def _cart_with_product(make_product, add_to_cart, make_address, state, customer, quantity, price):
    product = make_product(price=price)
    add_to_cart(customer, product, quantity=quantity)
    make_address(customer)
    state["product"] = product


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('customer "{customer}" places a "{method}" order'))
@when(parsers.cfparse('customer "{customer}" places a "{method}" order'))
def _place(state, customer, method):
    state["order"] = place_order(customer, "addr-001", method, checkout_session_id="sess-bdd")


@when(parsers.cfparse('customer "{customer}" places a "{method}" order with coupon "{code}"'))
def _place_with_coupon(state, customer, method, code):
    state["order"] = place_order(customer, "addr-001", method, coupon_code=code, checkout_session_id="sess-bdd")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}" with a total of {total:g}'))
def _order_status(state, status, total):
    order = find_order(state["order"].order_number)
    assert order.status == status
    assert order.total == total


@then(parsers.cfparse('coupon "{code}" has been used {count:d} time'))
def _coupon_usage(code, count):
    assert current_domain.repository_for(Coupon).get(code).current_usage_count == count


@then(parsers.cfparse('the cart of customer "{customer}" is empty'))
def _cart_empty(customer):
    assert snapshot_cart(customer).is_empty


@then(parsers.cfparse('the cart of customer "{customer}" is not empty'))
def _cart_not_empty(customer):
    assert not snapshot_cart(customer).is_empty


@then(parsers.cfparse("the product stock is {stock:d}"))
def _product_stock(state, stock):
    assert current_domain.repository_for(Product).get(state["product"].id).stock == stock
