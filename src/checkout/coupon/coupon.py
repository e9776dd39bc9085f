"""Coupon aggregate (CQRS) — promotional discounts redeemable at checkout.

A coupon is identified by its uppercase code. Eligibility is evaluated
against live order value, cart categories, and the customer's history every
time it is applied; nothing about an evaluation is stored on the coupon
except the usage counter, which moves only when an order is confirmed.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, List, String

from checkout.coupon.events import CouponCreated, CouponDeactivated, CouponRedeemed
from checkout.domain import checkout


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class UsageType(Enum):
    SINGLE_USE = "single-use"
    MULTI_USE = "multi-use"
    FIRST_TIME_USER_ONLY = "first-time-user-only"


def normalize_code(code) -> str:
    return (code or "").strip().upper()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so window checks never mix offsets."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@checkout.aggregate
class Coupon:
    code = String(identifier=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    usage_type = String(choices=UsageType, default=UsageType.MULTI_USE.value)
    max_usage_count = Integer(min_value=1)  # None means unlimited
    max_usage_per_user = Integer(min_value=1)  # None means unlimited
    current_usage_count = Integer(default=0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    min_order_value = Float(default=0.0, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    applicable_category_ids = List(content_type=String)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def percentage_must_not_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.discount_value > 100:
            raise ValidationError({"discount_value": ["A percentage discount cannot exceed 100"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and as_utc(self.valid_until) <= as_utc(self.valid_from):
            raise ValidationError({"valid_until": ["Coupon must expire after it becomes valid"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        valid_from,
        valid_until,
        description=None,
        usage_type=UsageType.MULTI_USE.value,
        max_usage_count=None,
        max_usage_per_user=None,
        min_order_value=0.0,
        max_discount_amount=None,
        applicable_category_ids=None,
    ):
        if usage_type == UsageType.SINGLE_USE.value and max_usage_per_user is None:
            max_usage_per_user = 1

        coupon = cls(
            code=normalize_code(code),
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            usage_type=usage_type,
            max_usage_count=max_usage_count,
            max_usage_per_user=max_usage_per_user,
            current_usage_count=0,
            valid_from=as_utc(valid_from),
            valid_until=as_utc(valid_until),
            min_order_value=min_order_value or 0.0,
            max_discount_amount=max_discount_amount,
            applicable_category_ids=list(applicable_category_ids or []),
            is_active=True,
            created_at=datetime.now(UTC),
        )
        coupon.raise_(
            CouponCreated(
                code=coupon.code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
                valid_until=coupon.valid_until,
            )
        )
        return coupon

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_within_window(self, at: datetime) -> bool:
        return as_utc(self.valid_from) <= at <= as_utc(self.valid_until)

    def usage_limit_reached(self) -> bool:
        return self.max_usage_count is not None and self.current_usage_count >= self.max_usage_count

    def applies_to_any(self, category_ids) -> bool:
        """A coupon without category restrictions applies to every cart."""
        if not self.applicable_category_ids:
            return True
        return any(str(category) in self.applicable_category_ids for category in category_ids or [])

    def discount_for(self, order_value: float) -> float:
        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = order_value * self.discount_value / 100
            if self.max_discount_amount and discount > self.max_discount_amount:
                discount = self.max_discount_amount
        else:
            discount = self.discount_value

        return round(min(discount, order_value), 2)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def record_usage(self, customer_id, order_number, discount_amount):
        self.current_usage_count += 1
        self.raise_(
            CouponRedeemed(
                code=self.code,
                customer_id=str(customer_id),
                order_number=order_number,
                discount_amount=discount_amount,
                usage_count=self.current_usage_count,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})
        self.is_active = False
        self.raise_(CouponDeactivated(code=self.code))
