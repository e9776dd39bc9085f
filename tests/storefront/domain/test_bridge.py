"""Tests for the payment gateway bridge."""

from unittest.mock import MagicMock

import requests
from storefront.bridge import (
    CheckoutOptions,
    FakeGatewayBridge,
    GatewayCancelled,
    GatewaySuccess,
    HostedCheckoutBridge,
    SdkLoader,
    SdkLoadFailed,
)


def _options():
    return CheckoutOptions.from_intent(
        {"key_id": "rzp_test_fake", "amount": 60000, "currency": "INR", "order_id": "order_fake_001"},
        "ORD-20250101-000001",
    )


def _loader(session=None):
    if session is None:
        session = MagicMock()
        session.get.return_value.text = "window.Razorpay = function () {};"
    return SdkLoader(session=session)


class TestCheckoutOptions:
    def test_from_intent(self):
        options = _options()
        assert options.key_id == "rzp_test_fake"
        assert options.amount == 60000
        assert options.notes == {"order_number": "ORD-20250101-000001"}


class TestSdkLoader:
    def test_loads_once(self):
        loader = _loader()
        loader.load()
        loader.load()
        assert loader.loaded is True
        assert loader.session.get.call_count == 1

    def test_failure_can_be_retried(self):
        session = MagicMock()
        session.get.side_effect = [requests.ConnectionError("offline"), MagicMock(text="sdk")]
        loader = _loader(session)

        bridge = HostedCheckoutBridge(presenter=lambda script, options: None, loader=loader)
        assert isinstance(bridge.open(_options()), SdkLoadFailed)
        assert isinstance(bridge.open(_options()), GatewayCancelled)


class TestHostedCheckoutBridge:
    def test_success_payload(self):
        def presenter(script, options):
            return {
                "razorpay_order_id": options.order_id,
                "razorpay_payment_id": "pay_001",
                "razorpay_signature": "sig",
            }

        outcome = HostedCheckoutBridge(presenter, loader=_loader()).open(_options())

        assert outcome == GatewaySuccess(gateway_order_id="order_fake_001", payment_id="pay_001", signature="sig")

    def test_dismissed(self):
        outcome = HostedCheckoutBridge(lambda script, options: None, loader=_loader()).open(_options())
        assert isinstance(outcome, GatewayCancelled)


class TestFakeGatewayBridge:
    def test_scripted_outcomes(self):
        bridge = FakeGatewayBridge([GatewayCancelled(), lambda options: GatewaySuccess(options.order_id, "pay_1", "s")])

        assert isinstance(bridge.open(_options()), GatewayCancelled)
        assert bridge.open(_options()).gateway_order_id == "order_fake_001"
        assert len(bridge.opened) == 2
