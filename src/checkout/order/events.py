"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A pending order was created from the customer's cart."""

    __version__ = 1

    order_number = String(required=True)
    customer_id = Identifier(required=True)
    payment_method = String(required=True)
    total = Float(required=True)
    currency = String(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class PaymentIntentOpened:
    """A gateway order was created for the customer to pay against."""

    __version__ = 1

    order_number = String(required=True)
    gateway_order_id = String(required=True)
    total = Float(required=True)
    expires_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderConfirmed:
    """The order is paid for, or accepted as cash on delivery.

    This is the point at which order-confirmation notifications are sent.
    """

    __version__ = 1

    order_number = String(required=True)
    customer_id = Identifier(required=True)
    payment_method = String(required=True)
    payment_id = String()
    total = Float(required=True)
    confirmed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderFailed:
    """The order will not be confirmed; no further payment is expected for it."""

    __version__ = 1

    order_number = String(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class PaymentAttemptFailed:
    """The gateway declined one payment attempt; the order is still payable."""

    __version__ = 1

    order_number = String(required=True)
    payment_id = String()
    reason = String(required=True)
    attempt = Integer(required=True)
    failed_at = DateTime(required=True)
