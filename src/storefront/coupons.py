"""Coupon apply / re-validate against the checkout API."""

from dataclasses import dataclass

from storefront.session import AppliedCoupon


@dataclass(frozen=True)
class CouponRejected:
    code: str
    reason: str
    message: str


def normalize_coupon_code(code: str | None) -> str:
    return (code or "").strip().upper()


class CouponApplier:
    def __init__(self, api, customer_id: str) -> None:
        self.api = api
        self.customer_id = customer_id

    def apply(self, code: str, order_value: float, category_ids: list[str]) -> AppliedCoupon | CouponRejected:
        """Ask the server to evaluate ``code`` for the current order value."""
        code = normalize_coupon_code(code)
        if not code:
            return CouponRejected(code=code, reason="unknown_code", message="Please enter a coupon code")

        body = self.api.validate_coupon(code, self.customer_id, order_value, category_ids)
        if not body["eligible"]:
            return CouponRejected(code=body["code"], reason=body["reason"], message=body["message"])
        return AppliedCoupon(code=body["code"], discount_amount=body["discount_amount"], order_value=order_value)

    def revalidate(
        self, applied: AppliedCoupon, order_value: float, category_ids: list[str]
    ) -> AppliedCoupon | CouponRejected:
        return self.apply(applied.code, order_value, category_ids)
