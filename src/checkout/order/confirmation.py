"""Payment verification and order confirmation.

``verify_payment`` recomputes the gateway signature server-side; what the
client says about the payment is never trusted on its own.
``ConfirmOrder`` is idempotent on (order number, payment id), so the client's
callback and the gateway's webhook can race without double-settling.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.errors import CheckoutError, CheckoutErrorKind
from checkout.gateway import get_gateway
from checkout.gateway.port import GatewayNotConfigured
from checkout.order.history import find_order
from checkout.order.order import Order, OrderStatus
from checkout.order.settlement import settle_confirmed_order

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    order_number: str
    gateway_order_id: str
    payment_id: str
    verified: bool = True


@dataclass(frozen=True)
class ConfirmationResult:
    order_number: str
    status: str
    payment_id: str | None
    already_confirmed: bool = False

    def to_dict(self) -> dict:
        return {
            "order_number": self.order_number,
            "status": self.status,
            "payment_id": self.payment_id,
            "already_confirmed": self.already_confirmed,
        }


def _order_or_error(order_number) -> Order:
    order = find_order(order_number)
    if order is None:
        raise CheckoutError(CheckoutErrorKind.ORDER_NOT_FOUND, f"Order {order_number} was not found")
    return order


def verify_payment(order_number, gateway_order_id, payment_id, signature) -> VerificationResult:
    """Check a gateway success payload against the order it claims to pay for."""
    order = _order_or_error(order_number)

    try:
        authentic = order.payment_reference == gateway_order_id and get_gateway().verify_payment_signature(
            gateway_order_id, payment_id, signature
        )
    except GatewayNotConfigured as exc:
        raise CheckoutError(
            CheckoutErrorKind.GATEWAY_NOT_CONFIGURED,
            "Online payment is not configured on this store",
        ) from exc

    if not authentic:
        logger.warning(
            "payment_signature_mismatch",
            order_number=order_number,
            gateway_order_id=gateway_order_id,
            expected_gateway_order_id=order.payment_reference,
            payment_id=payment_id,
        )
        raise CheckoutError(
            CheckoutErrorKind.SIGNATURE_MISMATCH,
            "Payment could not be verified",
            order_number=order_number,
        )

    return VerificationResult(order_number=order_number, gateway_order_id=gateway_order_id, payment_id=payment_id)


@checkout.command(part_of="Order")
class ConfirmOrder:
    """Confirm a pending order against a verified gateway payment."""

    order_number = String(required=True, max_length=30)
    payment_id = String(required=True, max_length=100)


@checkout.command_handler(part_of=Order)
class ConfirmOrderHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        order = _order_or_error(command.order_number)

        if order.is_confirmed() and order.payment_id == command.payment_id:
            logger.info("order_already_confirmed", order_number=order.order_number, payment_id=command.payment_id)
            return ConfirmationResult(
                order_number=order.order_number,
                status=order.status,
                payment_id=order.payment_id,
                already_confirmed=True,
            )

        if not order.is_pending():
            logger.error(
                "payment_needs_reconciliation",
                order_number=order.order_number,
                status=order.status,
                payment_id=command.payment_id,
                recorded_payment_id=order.payment_id,
            )
            raise CheckoutError(
                CheckoutErrorKind.PAYMENT_CONFLICT,
                f"Order {order.order_number} is {order.status} and cannot accept this payment",
                order_number=order.order_number,
            )

        order.confirm(command.payment_id)
        current_domain.repository_for(Order).add(order)
        settle_confirmed_order(order)
        logger.info("order_confirmed", order_number=order.order_number, payment_id=command.payment_id)

        return ConfirmationResult(
            order_number=order.order_number,
            status=OrderStatus.CONFIRMED.value,
            payment_id=command.payment_id,
        )


def confirm_order(order_number, payment_id) -> ConfirmationResult:
    return current_domain.process(ConfirmOrder(order_number=order_number, payment_id=payment_id), asynchronous=False)


def verify_and_confirm(order_number, gateway_order_id, payment_id, signature) -> ConfirmationResult:
    verification = verify_payment(order_number, gateway_order_id, payment_id, signature)
    return confirm_order(verification.order_number, verification.payment_id)
