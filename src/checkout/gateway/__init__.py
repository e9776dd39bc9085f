"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- RazorpayGateway when RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are set
- FakeGateway for development and testing otherwise

In production the Razorpay adapter is always used, so missing credentials
surface as "gateway not configured" instead of a fake that accepts anything.
"""

import os

from checkout.gateway.fake_adapter import FakeGateway
from checkout.gateway.port import PaymentGateway
from checkout.gateway.razorpay_adapter import RazorpayGateway
from checkout.settings import get_settings

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        settings = get_settings()
        has_credentials = bool(settings.gateway_key_id and settings.gateway_key_secret)
        if has_credentials or os.environ.get("PROTEAN_ENV") == "production":
            _current_gateway = RazorpayGateway(
                key_id=settings.gateway_key_id,
                key_secret=settings.gateway_key_secret,
                webhook_secret=settings.gateway_webhook_secret,
            )
        else:
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
