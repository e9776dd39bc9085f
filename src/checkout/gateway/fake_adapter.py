"""Configurable fake payment gateway for development and testing.

Signs and verifies exactly like Razorpay, but with fixed test secrets and no
network calls. It can be switched to behave as unconfigured or unreachable.
"""

from uuid import uuid4

from checkout.gateway.port import (
    GatewayNotConfigured,
    GatewayUnavailable,
    IntentResult,
    PaymentGateway,
    hmac_sha256,
    signatures_match,
)

TEST_KEY_ID = "rzp_test_fake"
TEST_KEY_SECRET = "fake-key-secret"
TEST_WEBHOOK_SECRET = "fake-webhook-secret"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.configured: bool = True
        self.reachable: bool = True
        self.calls: list[dict] = []

    def configure(self, configured: bool = True, reachable: bool = True) -> None:
        """Configure gateway behavior at runtime."""
        self.configured = configured
        self.reachable = reachable

    def is_configured(self) -> bool:
        return self.configured

    def public_key(self) -> str:
        return TEST_KEY_ID

    def create_intent(self, amount_minor: int, currency: str, receipt: str, notes: dict) -> IntentResult:
        self.calls.append(
            {
                "method": "create_intent",
                "amount_minor": amount_minor,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
            }
        )
        if not self.configured:
            raise GatewayNotConfigured("Fake gateway is switched off")
        if not self.reachable:
            raise GatewayUnavailable("Fake gateway is unreachable")

        return IntentResult(
            gateway_order_id=f"order_fake_{uuid4().hex[:14]}",
            amount_minor=amount_minor,
            currency=currency,
        )

    def sign_payment(self, gateway_order_id: str, payment_id: str) -> str:
        """Produce the signature the SDK would return for this payment."""
        return hmac_sha256(TEST_KEY_SECRET, f"{gateway_order_id}|{payment_id}")

    def sign_webhook(self, payload: bytes) -> str:
        return hmac_sha256(TEST_WEBHOOK_SECRET, payload.decode("utf-8"))

    def verify_payment_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        self.calls.append({"method": "verify_payment_signature", "gateway_order_id": gateway_order_id})
        return signatures_match(self.sign_payment(gateway_order_id, payment_id), signature)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        return signatures_match(self.sign_webhook(payload), signature)
