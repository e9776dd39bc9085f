"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class ValidateCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    customer_id: str
    order_value: float = Field(ge=0)
    category_ids: list[str] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "first100",
                    "customer_id": "cust-001",
                    "order_value": 600.0,
                    "category_ids": ["cat-snacks"],
                }
            ]
        }
    }


class CouponEvaluationResponse(BaseModel):
    code: str
    discount_amount: float
    eligible: bool
    reason: str | None = None
    message: str | None = None


class CreateCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    discount_type: Literal["percentage", "flat"]
    discount_value: float = Field(gt=0)
    usage_type: Literal["single-use", "multi-use", "first-time-user-only"] = "multi-use"
    max_usage_count: int | None = Field(default=None, ge=1)
    max_usage_per_user: int | None = Field(default=None, ge=1)
    valid_from: datetime
    valid_until: datetime
    min_order_value: float = Field(default=0.0, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    applicable_category_ids: list[str] = Field(default_factory=list)


class CouponCodeResponse(BaseModel):
    code: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class CartRevisionResponse(BaseModel):
    revision: int


# ---------------------------------------------------------------------------
# Orders & payment
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str
    address_id: str
    payment_method: Literal["cod", "online"]
    coupon_code: str | None = None
    checkout_session_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "address_id": "addr-001",
                    "payment_method": "online",
                    "coupon_code": "FIRST100",
                    "checkout_session_id": "b2f1c0de",
                }
            ]
        }
    }


class GatewayCheckoutOptions(BaseModel):
    key_id: str
    amount: int
    currency: str
    order_id: str


class OrderCreatedResponse(BaseModel):
    order_number: str
    status: str
    payment_method: str
    total: float
    reused: bool = False
    gateway: GatewayCheckoutOptions | None = None
    pricing: dict = Field(default_factory=dict)


class VerifyPaymentRequest(BaseModel):
    gateway_order_id: str
    payment_id: str
    signature: str


class ConfirmationResponse(BaseModel):
    order_number: str
    status: str
    payment_id: str | None = None
    already_confirmed: bool = False


class StatusResponse(BaseModel):
    status: str
