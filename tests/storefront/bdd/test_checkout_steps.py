"""BDD tests for checkout step navigation."""

import pytest
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.controller import CheckoutStepController
from storefront.navigation import MemoryNavigator

scenarios("features/checkout_steps.feature")


@pytest.fixture()
def page(controller):
    """The controller behind the current page; replaced on reload."""
    return {"controller": controller, "selection": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the customer selected address "{address_id}"'))
def _selected_address(page, address_id):
    assert page["controller"].select_address(address_id).accepted


@given("the customer reached the payment step")
def _reached_payment(page):
    controller = page["controller"]
    controller.advance()
    controller.advance()
    assert controller.session.current_step == "payment"


@given(parsers.cfparse('address "{address_id}" was deleted elsewhere'))
def _address_deleted(api, address_id):
    api.addresses = [a for a in api.addresses if a["id"] != address_id]


@given("the cart holds an item that cannot be paid on delivery")
def _cod_blocked(api):
    api.change_cart([{"product_id": "prod-002", "name": "Kaju Katli", "unit_price": 450.0, "quantity": 1}])
    api.cod_blocked = ["Kaju Katli"]


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the customer advances")
def _advance(page):
    page["controller"].advance()


@when("the customer goes back")
def _retreat(page):
    page["controller"].retreat()


@when("the page is reloaded")
def _reload(page, api, store, navigator):
    reloaded = CheckoutStepController("cust-001", api, store, MemoryNavigator(navigator.current_url))
    reloaded.restore()
    page["controller"] = reloaded


@when(parsers.cfparse('the customer chooses "{method}"'))
def _choose(page, method):
    page["selection"] = page["controller"].select_payment_method(method)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the customer is on the "{step}" step'))
def _on_step(page, step):
    assert page["controller"].session.current_step == step


@then(parsers.cfparse('the customer sees "{message}"'))
def _sees(page, message):
    assert page["controller"].last_error == message


@then(parsers.cfparse('the address bar shows "{url}"'))
def _address_bar(page, url):
    assert page["controller"].navigator.current_url == url


@then("no address is selected")
def _no_address(page):
    assert page["controller"].session.selected_address_id is None


@then(parsers.cfparse('the choice is refused with "{message}"'))
def _refused(page, message):
    assert page["selection"].accepted is False
    assert page["selection"].message == message
