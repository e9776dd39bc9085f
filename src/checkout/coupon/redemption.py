"""Coupon redemptions — one record per confirmed order that used a coupon.

The record is keyed by order number, so replaying a confirmation can never
count the same order twice against a coupon's usage limits.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon
from checkout.domain import checkout

logger = structlog.get_logger(__name__)


@checkout.aggregate
class CouponRedemption:
    order_number = String(identifier=True, max_length=50)
    coupon_code = String(required=True, max_length=50)
    customer_id = Identifier(required=True)
    discount_amount = Float(required=True, min_value=0.0)
    order_value = Float(required=True, min_value=0.0)
    redeemed_at = DateTime()


def redemptions_for(coupon_code, customer_id=None) -> list:
    repo = current_domain.repository_for(CouponRedemption)
    filters = {"coupon_code": coupon_code}
    if customer_id is not None:
        filters["customer_id"] = str(customer_id)
    return repo._dao.query.filter(**filters).all().items


def redeem(coupon_code, customer_id, order_number, discount_amount, order_value) -> bool:
    """Record a redemption and bump the coupon's usage counter.

    Returns False without side effects when the order already redeemed it.
    """
    repo = current_domain.repository_for(CouponRedemption)
    if repo._dao.query.filter(order_number=order_number).all().items:
        logger.info("coupon_redemption_already_recorded", order_number=order_number, coupon_code=coupon_code)
        return False

    coupon_repo = current_domain.repository_for(Coupon)
    coupon = coupon_repo.get(coupon_code)
    coupon.record_usage(customer_id, order_number, discount_amount)
    coupon_repo.add(coupon)

    repo.add(
        CouponRedemption(
            order_number=order_number,
            coupon_code=coupon_code,
            customer_id=str(customer_id),
            discount_amount=discount_amount,
            order_value=order_value,
            redeemed_at=datetime.now(UTC),
        )
    )
    logger.info("coupon_redeemed", order_number=order_number, coupon_code=coupon_code)
    return True


def coupon_statistics(coupon_code) -> dict:
    """Usage totals for a coupon, as shown on the admin coupon screen."""
    records = redemptions_for(coupon_code)
    total_discount = sum(r.discount_amount for r in records)
    total_order_value = sum(r.order_value for r in records)
    return {
        "code": coupon_code,
        "total_usage": len(records),
        "total_discount": round(total_discount, 2),
        "total_order_value": round(total_order_value, 2),
        "average_discount": round(total_discount / len(records), 2) if records else 0.0,
    }
