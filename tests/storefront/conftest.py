"""Storefront fixtures: an in-memory stand-in for the checkout API."""

import pytest
from storefront.controller import CheckoutStepController
from storefront.navigation import MemoryNavigator
from storefront.storage import MemorySessionStore


class FakeCheckoutApi:
    """Answers like the checkout API, from state the test controls."""

    def __init__(self) -> None:
        self.addresses: list[dict] = [{"id": "addr-001", "line1": "12 MG Road", "is_default": True}]
        self.lines: list[dict] = [
            {"product_id": "prod-001", "name": "Masala Chips", "unit_price": 300.0, "quantity": 2}
        ]
        self.revision = 1
        self.delivery_fee = 0.0
        self.cod_blocked: list[str] = []
        self.coupons: dict[str, dict] = {"FIRST100": {"discount": 100.0, "min_order_value": 0.0}}
        self.order_results: list = []
        self.verify_results: list = []
        self.calls: list[tuple] = []

    # Test controls
    def change_cart(self, lines: list[dict]) -> None:
        self.lines = lines
        self.revision += 1

    # API surface
    @property
    def subtotal(self) -> float:
        return round(sum(line["unit_price"] * line["quantity"] for line in self.lines), 2)

    def list_addresses(self, customer_id):
        self.calls.append(("list_addresses", customer_id))
        return list(self.addresses)

    def get_cart(self, customer_id):
        self.calls.append(("get_cart", customer_id))
        return {
            "lines": list(self.lines),
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "category_ids": ["cat-snacks"],
            "revision": self.revision,
        }

    def cod_eligibility(self, customer_id):
        self.calls.append(("cod_eligibility", customer_id))
        return {
            "eligible": not self.cod_blocked,
            "cart_revision": self.revision,
            "disqualifying_items": list(self.cod_blocked),
        }

    def validate_coupon(self, code, customer_id, order_value, category_ids):
        self.calls.append(("validate_coupon", code, order_value))
        rule = self.coupons.get(code)
        if rule is None:
            return {"code": code, "eligible": False, "reason": "unknown_code", "message": "Invalid coupon code"}
        if order_value < rule["min_order_value"]:
            return {
                "code": code,
                "eligible": False,
                "reason": "minimum_not_met",
                "message": f"Minimum order value of {rule['min_order_value']:g} required to use this coupon",
            }
        return {"code": code, "eligible": True, "discount_amount": min(rule["discount"], order_value)}

    def place_order(self, **kwargs):
        self.calls.append(("place_order", kwargs))
        result = self.order_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def verify_payment(self, order_number, gateway_order_id, payment_id, signature):
        self.calls.append(("verify_payment", order_number, payment_id))
        result = self.verify_results.pop(0) if self.verify_results else {"status": "confirmed"}
        if isinstance(result, Exception):
            raise result
        return result

    def calls_to(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture()
def api():
    return FakeCheckoutApi()


@pytest.fixture()
def store():
    return MemorySessionStore()


@pytest.fixture()
def navigator():
    return MemoryNavigator("/checkout")


@pytest.fixture()
def controller(api, store, navigator):
    controller = CheckoutStepController("cust-001", api, store, navigator)
    controller.refresh_addresses()
    controller.refresh_cart()
    return controller


@pytest.fixture()
def at_payment(controller):
    """A controller standing on the payment step with an address chosen."""
    controller.select_address("addr-001")
    controller.advance()
    controller.advance()
    assert controller.session.current_step == "payment"
    return controller


@pytest.fixture()
def online_intent():
    """Build the body the API returns for a pending online order."""

    def _make(order_number="ORD-20250101-000001", gateway_order_id="order_fake_001", total=600.0, reused=False):
        return {
            "order_number": order_number,
            "status": "pending",
            "payment_method": "online",
            "total": total,
            "reused": reused,
            "gateway": {
                "key_id": "rzp_test_fake",
                "amount": int(round(total * 100)),
                "currency": "INR",
                "order_id": gateway_order_id,
            },
        }

    return _make


@pytest.fixture()
def confirmed_order():
    def _make(order_number="ORD-20250101-000001", total=500.0):
        return {
            "order_number": order_number,
            "status": "confirmed",
            "payment_method": "cod",
            "total": total,
            "gateway": None,
        }

    return _make
