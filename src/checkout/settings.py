"""Runtime settings for the checkout context.

Values are read from environment variables once and cached. Tests swap them
with set_settings() / reset_settings().
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutSettings:
    currency: str = "INR"
    free_delivery_threshold: float = 499.0
    delivery_fee: float = 40.0
    intent_ttl_minutes: int = 15
    gateway_key_id: str = ""
    gateway_key_secret: str = ""
    gateway_webhook_secret: str = ""

    def delivery_fee_for(self, subtotal: float) -> float:
        """Delivery is free at or above the threshold."""
        if subtotal >= self.free_delivery_threshold:
            return 0.0
        return self.delivery_fee

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        return cls(
            currency=os.getenv("CHECKOUT_CURRENCY", "INR"),
            free_delivery_threshold=float(os.getenv("CHECKOUT_FREE_DELIVERY_THRESHOLD", "499")),
            delivery_fee=float(os.getenv("CHECKOUT_DELIVERY_FEE", "40")),
            intent_ttl_minutes=int(os.getenv("CHECKOUT_INTENT_TTL_MINUTES", "15")),
            gateway_key_id=os.getenv("RAZORPAY_KEY_ID", ""),
            gateway_key_secret=os.getenv("RAZORPAY_KEY_SECRET", ""),
            gateway_webhook_secret=os.getenv("RAZORPAY_WEBHOOK_SECRET", ""),
        )


_current_settings: CheckoutSettings | None = None


def get_settings() -> CheckoutSettings:
    global _current_settings
    if _current_settings is None:
        _current_settings = CheckoutSettings.from_env()
    return _current_settings


def set_settings(settings: CheckoutSettings) -> None:
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    global _current_settings
    _current_settings = None
