"""Razorpay payment gateway adapter.

Creates orders through the Razorpay REST API and verifies the HMAC-SHA256
signatures Razorpay attaches to checkout callbacks and webhooks.
"""

import requests
import structlog

from checkout.gateway.port import (
    GatewayNotConfigured,
    GatewayUnavailable,
    IntentResult,
    PaymentGateway,
    hmac_sha256,
    signatures_match,
)

logger = structlog.get_logger(__name__)

API_BASE_URL = "https://api.razorpay.com/v1"


class RazorpayGateway(PaymentGateway):
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        webhook_secret: str = "",
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret
        self.session = session or requests.Session()
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def public_key(self) -> str:
        return self.key_id

    def create_intent(self, amount_minor: int, currency: str, receipt: str, notes: dict) -> IntentResult:
        if not self.is_configured():
            raise GatewayNotConfigured("Razorpay credentials are not set")

        try:
            response = self.session.post(
                f"{API_BASE_URL}/orders",
                json={"amount": amount_minor, "currency": currency, "receipt": receipt, "notes": notes},
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("gateway_request_failed", receipt=receipt, error=str(exc))
            raise GatewayUnavailable(str(exc)) from exc

        if response.status_code >= 400:
            logger.error("gateway_order_rejected", receipt=receipt, status_code=response.status_code)
            raise GatewayUnavailable(f"Gateway rejected order creation ({response.status_code})")

        body = response.json()
        return IntentResult(
            gateway_order_id=body["id"],
            amount_minor=body["amount"],
            currency=body["currency"],
            status=body.get("status", "created"),
            raw=body,
        )

    def verify_payment_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        if not self.is_configured():
            raise GatewayNotConfigured("Razorpay credentials are not set")
        expected = hmac_sha256(self.key_secret, f"{gateway_order_id}|{payment_id}")
        return signatures_match(expected, signature)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not self.webhook_secret:
            raise GatewayNotConfigured("Razorpay webhook secret is not set")
        expected = hmac_sha256(self.webhook_secret, payload.decode("utf-8"))
        return signatures_match(expected, signature)
