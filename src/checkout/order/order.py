"""Order aggregate (CQRS) — the server-owned record of a checkout attempt.

State Machine:
    PENDING → CONFIRMED   (verified online payment, or cash on delivery at creation)
    PENDING → FAILED      (superseded by a newer attempt)

A failed payment attempt reported by the gateway leaves the order PENDING:
the customer may still pay against the same gateway order with another
instrument until the intent expires.

Confirmation is keyed by order number plus the gateway's payment id:
confirming an already-confirmed order with the same payment id is a no-op.
"""

import secrets
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from checkout.domain import checkout
from checkout.order.events import (
    OrderConfirmed,
    OrderFailed,
    OrderPlaced,
    PaymentAttemptFailed,
    PaymentIntentOpened,
)


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class PaymentMethod(Enum):
    COD = "cod"
    ONLINE = "online"


def generate_order_number(at: datetime | None = None) -> str:
    at = at or datetime.now(UTC)
    return f"ORD-{at:%Y%m%d}-{secrets.randbelow(10**6):06d}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@checkout.value_object(part_of="Order")
class DeliveryAddress:
    """The address the order ships to, copied at placement time."""

    address_id = String(required=True, max_length=50)
    full_name = String(max_length=255)
    phone = String(max_length=30)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)


@checkout.value_object(part_of="Order")
class OrderPricing:
    subtotal = Float(default=0.0)
    delivery_fee = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="INR")

    @property
    def amount_minor(self) -> int:
        return int(round(self.total * 100))


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    category_id = Identifier()
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@checkout.aggregate
class Order:
    order_number = String(identifier=True, max_length=30)
    customer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, required=True)
    payment_reference = String(max_length=100)  # gateway order id
    payment_id = String(max_length=100)
    coupon_code = String(max_length=50)
    lines = HasMany(OrderLine)
    delivery_address = ValueObject(DeliveryAddress)
    pricing = ValueObject(OrderPricing)
    checkout_session_id = String(max_length=100)
    intent_expires_at = DateTime()
    failure_reason = String(max_length=500)
    failed_payment_id = String(max_length=100)
    last_payment_error = String(max_length=500)
    failed_attempts = Integer(default=0)
    placed_at = DateTime()
    confirmed_at = DateTime()
    updated_at = DateTime()

    @property
    def total(self) -> float:
        return self.pricing.total

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        payment_method,
        delivery_address,
        lines,
        pricing,
        coupon_code=None,
        checkout_session_id=None,
        order_number=None,
    ):
        """Create a pending order.

        Args:
            delivery_address: DeliveryAddress value object.
            lines: List of dicts with product_id, name, category_id, unit_price, quantity.
            pricing: OrderPricing value object.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number or generate_order_number(now),
            customer_id=str(customer_id),
            status=OrderStatus.PENDING.value,
            payment_method=payment_method,
            coupon_code=coupon_code,
            lines=[OrderLine(**line) for line in lines],
            delivery_address=delivery_address,
            pricing=pricing,
            checkout_session_id=checkout_session_id,
            placed_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_number=order.order_number,
                customer_id=order.customer_id,
                payment_method=payment_method,
                total=pricing.total,
                currency=pricing.currency,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING.value

    def is_confirmed(self) -> bool:
        return self.status == OrderStatus.CONFIRMED.value

    def can_reuse_intent(self, at: datetime, total: float, coupon_code, address_id) -> bool:
        """A pending intent is reusable only for the same amount, coupon, and address."""
        if not self.is_pending() or not self.payment_reference or self.intent_expires_at is None:
            return False
        expires_at = self.intent_expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return (
            at < expires_at
            and round(self.total, 2) == round(total, 2)
            and (self.coupon_code or None) == (coupon_code or None)
            and self.delivery_address.address_id == str(address_id)
        )

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def attach_intent(self, gateway_order_id, expires_at):
        if self.payment_method != PaymentMethod.ONLINE.value:
            raise ValidationError({"payment_method": ["Only online orders take a payment intent"]})
        if not self.is_pending():
            raise ValidationError({"status": [f"Cannot open a payment intent for a {self.status} order"]})

        self.payment_reference = gateway_order_id
        self.intent_expires_at = expires_at
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PaymentIntentOpened(
                order_number=self.order_number,
                gateway_order_id=gateway_order_id,
                total=self.total,
                expires_at=expires_at,
            )
        )

    def confirm(self, payment_id=None) -> bool:
        """Move the order to CONFIRMED.

        Returns False when the order is already confirmed with this payment id.
        """
        if self.is_confirmed():
            if self.payment_id == payment_id:
                return False
            raise ValidationError({"payment_id": ["Order is already confirmed with a different payment"]})
        if not self.is_pending():
            raise ValidationError({"status": [f"Cannot confirm a {self.status} order"]})
        if self.payment_method == PaymentMethod.ONLINE.value and not payment_id:
            raise ValidationError({"payment_id": ["Online orders are confirmed against a payment id"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.payment_id = payment_id
        self.confirmed_at = now
        self.updated_at = now
        self.raise_(
            OrderConfirmed(
                order_number=self.order_number,
                customer_id=self.customer_id,
                payment_method=self.payment_method,
                payment_id=payment_id,
                total=self.total,
                confirmed_at=now,
            )
        )
        return True

    def record_failed_attempt(self, payment_id, reason):
        """Note a declined or aborted payment; the order stays payable."""
        if not self.is_pending():
            raise ValidationError({"status": [f"Cannot record a payment attempt on a {self.status} order"]})

        now = datetime.now(UTC)
        self.failed_payment_id = payment_id
        self.last_payment_error = reason
        self.failed_attempts = (self.failed_attempts or 0) + 1
        self.updated_at = now
        self.raise_(
            PaymentAttemptFailed(
                order_number=self.order_number,
                payment_id=payment_id,
                reason=reason,
                attempt=self.failed_attempts,
                failed_at=now,
            )
        )

    def mark_failed(self, reason):
        if not self.is_pending():
            raise ValidationError({"status": [f"Cannot fail a {self.status} order"]})

        now = datetime.now(UTC)
        self.status = OrderStatus.FAILED.value
        self.failure_reason = reason
        self.updated_at = now
        self.raise_(OrderFailed(order_number=self.order_number, reason=reason, failed_at=now))

    def to_dict(self) -> dict:
        return {
            "order_number": self.order_number,
            "customer_id": str(self.customer_id),
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "payment_id": self.payment_id,
            "coupon_code": self.coupon_code,
            "lines": [
                {
                    "product_id": str(line.product_id),
                    "name": line.name,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                }
                for line in self.lines
            ],
            "pricing": {
                "subtotal": self.pricing.subtotal,
                "delivery_fee": self.pricing.delivery_fee,
                "discount": self.pricing.discount,
                "total": self.pricing.total,
                "currency": self.pricing.currency,
            },
            "placed_at": self.placed_at,
            "confirmed_at": self.confirmed_at,
            "failure_reason": self.failure_reason,
            "last_payment_error": self.last_payment_error,
        }
