"""Client-side checkout session state."""

from dataclasses import dataclass, field
from typing import Literal
from uuid import uuid4

from storefront.steps import Step

PaymentMethod = Literal["cod", "online"]
PAYMENT_METHODS = ("cod", "online")


@dataclass(frozen=True)
class AppliedCoupon:
    """A coupon the customer applied.

    ``discount_amount`` is what the server approved for ``order_value``; it is
    a display cache and is re-validated before any price is trusted.
    """

    code: str
    discount_amount: float
    order_value: float

    def to_dict(self) -> dict:
        return {"code": self.code, "discount_amount": self.discount_amount, "order_value": self.order_value}

    @classmethod
    def from_dict(cls, data: dict | None) -> "AppliedCoupon | None":
        if not data or not data.get("code"):
            return None
        return cls(
            code=str(data["code"]),
            discount_amount=float(data.get("discount_amount", 0.0)),
            order_value=float(data.get("order_value", 0.0)),
        )


@dataclass
class CheckoutSession:
    selected_address_id: str | None = None
    selected_payment_method: PaymentMethod | None = None
    applied_coupon: AppliedCoupon | None = None
    current_step: Step = "address"
    checkout_session_id: str = field(default_factory=lambda: uuid4().hex)
