"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Coupon")
class CouponCreated:
    """A new coupon became available for redemption."""

    __version__ = 1

    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)
    valid_until = DateTime(required=True)


@checkout.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was consumed by a confirmed order."""

    __version__ = 1

    code = String(required=True)
    customer_id = Identifier(required=True)
    order_number = String(required=True)
    discount_amount = Float(required=True)
    usage_count = Integer(required=True)


@checkout.event(part_of="Coupon")
class CouponDeactivated:
    """A coupon was withdrawn before its validity window ended."""

    __version__ = 1

    code = String(required=True)
