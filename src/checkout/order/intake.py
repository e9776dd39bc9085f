"""Order intake — turn the customer's cart into a pending order.

The server re-checks everything the client already showed the customer:
address ownership, coupon eligibility, live prices, and COD eligibility.
Cash-on-delivery orders are confirmed on the spot. Online orders get a
gateway intent and stay pending until the payment is verified.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.addresses import get_address_book
from checkout.cart.pricing import CartSnapshot, snapshot_cart
from checkout.cod.eligibility import evaluate_cod
from checkout.coupon.coupon import normalize_code
from checkout.coupon.evaluation import evaluate_coupon
from checkout.domain import checkout
from checkout.errors import CheckoutError, CheckoutErrorKind
from checkout.gateway import get_gateway
from checkout.gateway.port import GatewayNotConfigured, GatewayUnavailable
from checkout.order.history import find_order, pending_online_order_for_session
from checkout.order.order import DeliveryAddress, Order, OrderPricing, PaymentMethod, generate_order_number
from checkout.order.settlement import settle_confirmed_order
from checkout.settings import get_settings

logger = structlog.get_logger(__name__)

GATEWAY_NOT_CONFIGURED_MESSAGE = "Online payment is not configured on this store"


@dataclass(frozen=True)
class OrderCreationResult:
    order_number: str
    status: str
    payment_method: str
    total: float
    reused: bool = False
    gateway: dict | None = None
    pricing: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "order_number": self.order_number,
            "status": self.status,
            "payment_method": self.payment_method,
            "total": self.total,
            "reused": self.reused,
            "gateway": self.gateway,
            "pricing": self.pricing,
        }


@checkout.command(part_of="Order")
class PlaceOrder:
    """Create an order from the customer's current cart."""

    customer_id = Identifier(required=True)
    address_id = String(required=True, max_length=50)
    payment_method = String(required=True, choices=PaymentMethod)
    coupon_code = String(max_length=50)
    checkout_session_id = String(max_length=100)


def _result(order: Order, reused: bool = False) -> OrderCreationResult:
    gateway = None
    if order.payment_method == PaymentMethod.ONLINE.value and order.payment_reference:
        gateway = {
            "key_id": get_gateway().public_key(),
            "amount": order.pricing.amount_minor,
            "currency": order.pricing.currency,
            "order_id": order.payment_reference,
        }
    return OrderCreationResult(
        order_number=order.order_number,
        status=order.status,
        payment_method=order.payment_method,
        total=order.total,
        reused=reused,
        gateway=gateway,
        pricing=order.to_dict()["pricing"],
    )


def _price(snapshot: CartSnapshot, discount: float) -> OrderPricing:
    delivery_fee = snapshot.delivery_fee
    return OrderPricing(
        subtotal=snapshot.subtotal,
        delivery_fee=delivery_fee,
        discount=discount,
        total=round(snapshot.subtotal - discount + delivery_fee, 2),
        currency=get_settings().currency,
    )


def _unused_order_number() -> str:
    for _ in range(5):
        candidate = generate_order_number()
        if find_order(candidate) is None:
            return candidate
    raise RuntimeError("Could not allocate a unique order number")


@checkout.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        customer_id = str(command.customer_id)

        address = get_address_book().find(customer_id, command.address_id)
        if address is None:
            raise CheckoutError(
                CheckoutErrorKind.ADDRESS_NOT_FOUND,
                "The selected delivery address no longer exists",
                address_id=command.address_id,
            )

        snapshot = snapshot_cart(customer_id)
        if snapshot.is_empty:
            raise CheckoutError(CheckoutErrorKind.CART_EMPTY, "Your cart is empty")

        coupon_code, discount = None, 0.0
        if command.coupon_code:
            evaluation = evaluate_coupon(command.coupon_code, customer_id, snapshot.subtotal, snapshot.category_ids)
            if not evaluation.eligible:
                raise CheckoutError(
                    CheckoutErrorKind.COUPON_REJECTED,
                    evaluation.message,
                    code=evaluation.code,
                    reason=evaluation.reason.value,
                )
            coupon_code, discount = evaluation.code, evaluation.discount_amount

        pricing = _price(snapshot, discount)
        repo = current_domain.repository_for(Order)
        previous = pending_online_order_for_session(customer_id, command.checkout_session_id)
        now = datetime.now(UTC)

        if command.payment_method == PaymentMethod.ONLINE.value:
            gateway = get_gateway()
            if not gateway.is_configured():
                raise CheckoutError(CheckoutErrorKind.GATEWAY_NOT_CONFIGURED, GATEWAY_NOT_CONFIGURED_MESSAGE)
            if previous is not None and previous.can_reuse_intent(now, pricing.total, coupon_code, address.id):
                logger.info("payment_intent_reused", order_number=previous.order_number)
                return _result(previous, reused=True)
        else:
            cod = evaluate_cod(snapshot)
            if not cod.eligible:
                raise CheckoutError(
                    CheckoutErrorKind.COD_UNAVAILABLE,
                    cod.message,
                    disqualifying_items=cod.disqualifying_items,
                )

        if previous is not None:
            previous.mark_failed("superseded")
            repo.add(previous)
            logger.info("pending_order_superseded", order_number=previous.order_number)

        order = Order.place(
            customer_id=customer_id,
            payment_method=command.payment_method,
            delivery_address=DeliveryAddress(
                address_id=address.id,
                full_name=address.full_name,
                phone=address.phone,
                line1=address.line1,
                line2=address.line2,
                city=address.city,
                state=address.state,
                postal_code=address.postal_code,
            ),
            lines=[
                {
                    "product_id": line.product_id,
                    "name": line.name,
                    "category_id": line.category_id,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                }
                for line in snapshot.lines
            ],
            pricing=pricing,
            coupon_code=coupon_code,
            checkout_session_id=command.checkout_session_id,
            order_number=_unused_order_number(),
        )

        if command.payment_method == PaymentMethod.COD.value:
            order.confirm()
            repo.add(order)
            settle_confirmed_order(order)
            logger.info("cod_order_confirmed", order_number=order.order_number, total=order.total)
            return _result(order)

        try:
            intent = get_gateway().create_intent(
                amount_minor=pricing.amount_minor,
                currency=pricing.currency,
                receipt=order.order_number,
                notes={"order_number": order.order_number, "customer_id": customer_id},
            )
        except GatewayNotConfigured as exc:
            raise CheckoutError(CheckoutErrorKind.GATEWAY_NOT_CONFIGURED, GATEWAY_NOT_CONFIGURED_MESSAGE) from exc
        except GatewayUnavailable as exc:
            raise CheckoutError(
                CheckoutErrorKind.GATEWAY_UNAVAILABLE,
                "The payment service did not respond. No charge was made.",
            ) from exc

        order.attach_intent(intent.gateway_order_id, now + timedelta(minutes=get_settings().intent_ttl_minutes))
        repo.add(order)
        logger.info(
            "payment_intent_opened",
            order_number=order.order_number,
            gateway_order_id=intent.gateway_order_id,
            total=order.total,
        )
        return _result(order)


def place_order(customer_id, address_id, payment_method, coupon_code=None, checkout_session_id=None):
    """Run PlaceOrder synchronously and return its OrderCreationResult."""
    command = PlaceOrder(
        customer_id=customer_id,
        address_id=address_id,
        payment_method=payment_method,
        coupon_code=normalize_code(coupon_code) or None,
        checkout_session_id=checkout_session_id,
    )
    return current_domain.process(command, asynchronous=False)
