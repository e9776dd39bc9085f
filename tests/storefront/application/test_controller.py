"""Tests for the checkout step controller against a fake checkout API."""

from storefront import messages
from storefront.controller import CheckoutStepController
from storefront.coupons import CouponRejected
from storefront.navigation import MemoryNavigator
from storefront.session import AppliedCoupon
from storefront.storage import SELECTED_ADDRESS_KEY, SELECTED_PAYMENT_METHOD_KEY, load_session


def _reloaded(api, store, url):
    """A fresh controller over the same storage, as after a page reload."""
    navigator = MemoryNavigator(url)
    controller = CheckoutStepController("cust-001", api, store, navigator)
    return controller, controller.restore()


class TestAddressSelection:
    def test_select_known_address(self, controller, store, navigator):
        result = controller.select_address("addr-001")

        assert result.accepted is True
        assert store.values[SELECTED_ADDRESS_KEY] == "addr-001"
        assert navigator.current_url == "/checkout?step=address"

    def test_unknown_address_refused_after_refetch(self, controller, api):
        result = controller.select_address("addr-404")

        assert result.accepted is False
        assert result.message == messages.ADDRESS_GONE
        assert controller.session.selected_address_id is None
        assert len(api.calls_to("list_addresses")) == 2

    def test_address_added_elsewhere_is_picked_up(self, controller, api):
        api.addresses.append({"id": "addr-002", "line1": "7 Brigade Road"})
        assert controller.select_address("addr-002").accepted is True


class TestStepNavigation:
    def test_cannot_advance_without_address(self, controller, navigator):
        decision = controller.advance()

        assert decision.allowed is False
        assert controller.session.current_step == "address"
        assert controller.last_error == "Please select a delivery address"
        assert navigator.history == ["/checkout"]

    def test_walks_forward_and_mirrors_url(self, at_payment, navigator, api):
        assert navigator.current_url == "/checkout?step=payment"
        assert navigator.history == ["/checkout?step=payment"]
        assert len(api.calls_to("cod_eligibility")) == 1

    def test_retreat(self, at_payment, navigator):
        at_payment.retreat()
        assert at_payment.session.current_step == "review"
        assert navigator.current_url == "/checkout?step=review"

    def test_cart_change_refreshes_cod_check(self, at_payment, api):
        at_payment.retreat()
        api.change_cart([{"product_id": "prod-002", "name": "Kaju Katli", "unit_price": 450.0, "quantity": 1}])
        api.cod_blocked = ["Kaju Katli"]

        decision = at_payment.advance()

        assert decision.allowed is True
        assert at_payment.cod_gate.checked_revision == api.revision
        assert at_payment.cod_status().eligible is False
        assert len(api.calls_to("cod_eligibility")) == 2

    def test_empty_cart_cannot_reach_payment(self, controller, api):
        controller.select_address("addr-001")
        controller.advance()
        api.change_cart([])

        decision = controller.advance()

        assert decision.allowed is False
        assert decision.guard_reason == "cart_empty"
        assert controller.last_error == messages.CART_EMPTY
        assert controller.session.current_step == "review"
        assert api.calls_to("cod_eligibility") == []

    def test_address_deleted_elsewhere_blocks_advance(self, controller, api, navigator):
        controller.select_address("addr-001")
        api.addresses = []

        decision = controller.advance()

        assert decision.allowed is False
        assert decision.guard_reason == "address_required"
        assert controller.session.current_step == "address"
        assert controller.session.selected_address_id is None
        assert navigator.current_url == "/checkout?step=address"

    def test_address_deleted_on_review_returns_to_address(self, controller, api):
        controller.select_address("addr-001")
        controller.advance()
        api.addresses = [{"id": "addr-002", "line1": "7 Brigade Road"}]

        decision = controller.advance()

        assert decision.allowed is False
        assert controller.session.current_step == "address"
        assert api.calls_to("cod_eligibility") == []

    def test_address_invalidated(self, at_payment, api):
        api.addresses = []

        at_payment.address_invalidated()

        assert at_payment.session.current_step == "address"
        assert at_payment.session.selected_address_id is None


class TestPaymentMethod:
    def test_online(self, at_payment, store):
        assert at_payment.select_payment_method("online").accepted is True
        assert store.values[SELECTED_PAYMENT_METHOD_KEY] == "online"

    def test_cod_refused_with_items(self, controller, api):
        api.cod_blocked = ["Kaju Katli"]

        result = controller.select_payment_method("cod")

        assert result.accepted is False
        assert result.disqualifying_items == ("Kaju Katli",)
        assert result.message == "COD is not available for: Kaju Katli"
        assert controller.session.selected_payment_method is None

    def test_unknown_method(self, controller):
        assert controller.select_payment_method("upi").accepted is False


class TestCoupons:
    def test_apply(self, controller, store):
        result = controller.apply_coupon(" first100 ")

        assert result == AppliedCoupon(code="FIRST100", discount_amount=100.0, order_value=600.0)
        assert load_session(store).applied_coupon == result

    def test_rejected_code_not_stored(self, controller):
        result = controller.apply_coupon("NOPE")

        assert isinstance(result, CouponRejected)
        assert controller.session.applied_coupon is None
        assert controller.last_error == "Invalid coupon code"

    def test_review_pricing(self, controller):
        controller.apply_coupon("FIRST100")

        pricing = controller.price_review()

        assert (pricing.subtotal, pricing.discount, pricing.delivery_fee, pricing.total) == (600.0, 100.0, 0.0, 500.0)

    def test_review_drops_coupon_below_minimum(self, controller, api):
        api.coupons["SAVE50"] = {"discount": 50.0, "min_order_value": 500.0}
        controller.apply_coupon("SAVE50")
        api.change_cart([{"product_id": "prod-001", "name": "Masala Chips", "unit_price": 300.0, "quantity": 1}])
        api.delivery_fee = 40.0

        pricing = controller.price_review()

        assert pricing.discount == 0.0
        assert pricing.total == 340.0
        assert pricing.coupon is None
        assert controller.last_error == "Minimum order value of 500 required to use this coupon"

    def test_remove(self, controller, store):
        controller.apply_coupon("FIRST100")
        controller.remove_coupon()
        assert load_session(store).applied_coupon is None


class TestRestore:
    def test_reload_on_payment(self, at_payment, api, store, navigator):
        at_payment.select_payment_method("online")

        controller, decision = _reloaded(api, store, navigator.current_url)

        assert decision.allowed is True
        assert controller.session.current_step == "payment"
        assert controller.session.selected_payment_method == "online"
        assert controller.session.checkout_session_id == at_payment.session.checkout_session_id

    def test_reload_with_deleted_address(self, at_payment, api, store, navigator):
        api.addresses = [{"id": "addr-002", "line1": "7 Brigade Road"}]

        controller, decision = _reloaded(api, store, navigator.current_url)

        assert decision.guard_reason == "address_required"
        assert controller.session.current_step == "address"
        assert controller.session.selected_address_id is None
        assert controller.navigator.current_url == "/checkout?step=address"
        assert SELECTED_ADDRESS_KEY not in store.values

    def test_reload_with_unknown_step(self, controller, api, store):
        controller.select_address("addr-001")

        restored, _ = _reloaded(api, store, "/checkout?step=shipping")

        assert restored.session.current_step == "address"
        assert restored.navigator.current_url == "/checkout?step=address"


class TestSubmitGuard:
    def test_second_submit_is_refused(self, controller):
        assert controller.try_begin_submit() is True
        assert controller.submitting is True
        assert controller.try_begin_submit() is False
        controller.end_submit()
        assert controller.submitting is False

    def test_teardown_clears_storage(self, at_payment, store):
        at_payment.teardown()
        assert store.values == {}
        assert at_payment.completed is True
