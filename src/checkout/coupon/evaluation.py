"""Coupon evaluation — decide whether a code applies to a cart right now.

Evaluations are transient: they are recomputed on every apply attempt and
again at order intake, because order value, categories, and the customer's
history can all change between the two.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon, UsageType, as_utc, normalize_code
from checkout.coupon.redemption import redemptions_for
from checkout.order.history import has_confirmed_orders

logger = structlog.get_logger(__name__)


class CouponRejection(Enum):
    UNKNOWN_CODE = "unknown_code"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    ALREADY_USED = "already_used"
    FIRST_ORDER_ONLY = "first_order_only"
    MINIMUM_NOT_MET = "minimum_not_met"
    CATEGORY_NOT_ELIGIBLE = "category_not_eligible"


_MESSAGES = {
    CouponRejection.UNKNOWN_CODE: "Invalid coupon code",
    CouponRejection.INACTIVE: "This coupon is no longer active",
    CouponRejection.NOT_YET_VALID: "This coupon is not yet valid",
    CouponRejection.EXPIRED: "This coupon has expired",
    CouponRejection.USAGE_LIMIT_REACHED: "This coupon has reached its maximum usage limit",
    CouponRejection.ALREADY_USED: "You have already used this coupon the maximum number of times",
    CouponRejection.FIRST_ORDER_ONLY: "This coupon is only valid for first-time users",
    CouponRejection.CATEGORY_NOT_ELIGIBLE: "This coupon is not applicable to the selected products",
}


@dataclass(frozen=True)
class CouponEvaluation:
    code: str
    discount_amount: float
    eligible: bool
    reason: CouponRejection | None = None
    message: str | None = None

    @classmethod
    def approved(cls, code: str, discount_amount: float) -> "CouponEvaluation":
        return cls(code=code, discount_amount=discount_amount, eligible=True)

    @classmethod
    def rejected(cls, code: str, reason: CouponRejection, message: str | None = None) -> "CouponEvaluation":
        return cls(
            code=code,
            discount_amount=0.0,
            eligible=False,
            reason=reason,
            message=message or _MESSAGES[reason],
        )

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "discount_amount": self.discount_amount,
            "eligible": self.eligible,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


def find_coupon(code) -> Coupon | None:
    matches = current_domain.repository_for(Coupon)._dao.query.filter(code=normalize_code(code)).all().items
    return matches[0] if matches else None


def _customer_limit_reached(coupon: Coupon, customer_id) -> bool:
    if coupon.max_usage_per_user is None:
        return False
    return len(redemptions_for(coupon.code, customer_id)) >= coupon.max_usage_per_user


def evaluate_coupon(code, customer_id, order_value, category_ids=None, at=None) -> CouponEvaluation:
    """Run every eligibility check in order; the first failure decides the reason."""
    if order_value is None or order_value < 0:
        raise ValidationError({"order_value": ["Order value must be zero or more"]})

    code = normalize_code(code)
    at = at or datetime.now(UTC)

    coupon = find_coupon(code)
    if coupon is None:
        return CouponEvaluation.rejected(code, CouponRejection.UNKNOWN_CODE)
    if not coupon.is_active:
        return CouponEvaluation.rejected(code, CouponRejection.INACTIVE)
    if not coupon.is_within_window(at):
        reason = CouponRejection.NOT_YET_VALID if at < as_utc(coupon.valid_from) else CouponRejection.EXPIRED
        return CouponEvaluation.rejected(code, reason)
    if coupon.usage_limit_reached():
        return CouponEvaluation.rejected(code, CouponRejection.USAGE_LIMIT_REACHED)
    if _customer_limit_reached(coupon, customer_id):
        return CouponEvaluation.rejected(code, CouponRejection.ALREADY_USED)
    if coupon.usage_type == UsageType.FIRST_TIME_USER_ONLY.value and has_confirmed_orders(customer_id):
        return CouponEvaluation.rejected(code, CouponRejection.FIRST_ORDER_ONLY)
    if coupon.min_order_value and order_value < coupon.min_order_value:
        return CouponEvaluation.rejected(
            code,
            CouponRejection.MINIMUM_NOT_MET,
            f"Minimum order value of {coupon.min_order_value:g} required to use this coupon",
        )
    if not coupon.applies_to_any(category_ids):
        return CouponEvaluation.rejected(code, CouponRejection.CATEGORY_NOT_ELIGIBLE)

    evaluation = CouponEvaluation.approved(code, coupon.discount_for(order_value))
    logger.debug("coupon_approved", code=code, customer_id=str(customer_id), discount=evaluation.discount_amount)
    return evaluation


def available_coupons(customer_id, order_value, at=None) -> dict:
    """Coupons the customer could apply to an order of this value, best first."""
    at = at or datetime.now(UTC)
    first_time_user = not has_confirmed_orders(customer_id)

    candidates = current_domain.repository_for(Coupon)._dao.query.filter(is_active=True).all().items
    offers = []
    for coupon in candidates:
        if not coupon.is_within_window(at) or coupon.usage_limit_reached():
            continue
        if coupon.usage_type == UsageType.FIRST_TIME_USER_ONLY.value and not first_time_user:
            continue
        if _customer_limit_reached(coupon, customer_id):
            continue
        if coupon.min_order_value and order_value < coupon.min_order_value:
            continue

        offers.append(
            {
                "code": coupon.code,
                "description": coupon.description,
                "discount_type": coupon.discount_type,
                "discount_value": coupon.discount_value,
                "usage_type": coupon.usage_type,
                "min_order_value": coupon.min_order_value,
                "max_discount_amount": coupon.max_discount_amount,
                "valid_until": coupon.valid_until,
                "estimated_discount": coupon.discount_for(order_value),
                "is_first_time_user_only": coupon.usage_type == UsageType.FIRST_TIME_USER_ONLY.value,
            }
        )

    offers.sort(key=lambda offer: offer["estimated_discount"], reverse=True)
    return {"coupons": offers, "is_first_time_user": first_time_user}
