"""Coupon management — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, List, String
from protean.utils.globals import current_domain

from checkout.coupon.coupon import Coupon, UsageType, normalize_code
from checkout.coupon.evaluation import find_coupon
from checkout.domain import checkout


@checkout.command(part_of="Coupon")
class CreateCoupon:
    """Publish a new coupon code."""

    code = String(required=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True, min_value=0.0)
    usage_type = String(max_length=30, default=UsageType.MULTI_USE.value)
    max_usage_count = Integer()
    max_usage_per_user = Integer()
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    min_order_value = Float(default=0.0)
    max_discount_amount = Float()
    applicable_category_ids = List(content_type=String)


@checkout.command(part_of="Coupon")
class DeactivateCoupon:
    """Withdraw a coupon so it can no longer be applied."""

    code = String(required=True, max_length=50)


@checkout.command_handler(part_of=Coupon)
class ManageCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        if find_coupon(command.code) is not None:
            raise ValidationError({"code": ["Coupon code already exists"]})

        coupon = Coupon.create(
            code=command.code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            usage_type=command.usage_type or UsageType.MULTI_USE.value,
            max_usage_count=command.max_usage_count,
            max_usage_per_user=command.max_usage_per_user,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            min_order_value=command.min_order_value,
            max_discount_amount=command.max_discount_amount,
            applicable_category_ids=command.applicable_category_ids,
        )
        current_domain.repository_for(Coupon).add(coupon)
        return coupon.code

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(normalize_code(command.code))
        coupon.deactivate()
        repo.add(coupon)
