"""Gateway webhook processing — commands and handler.

The gateway reports captured and failed payments directly to the server.
A captured payment goes through the same idempotent confirmation as the
client's callback, so whichever arrives second is a no-op.
"""

import structlog
from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.errors import CheckoutError
from checkout.order.confirmation import confirm_order
from checkout.order.history import find_order
from checkout.order.order import Order

logger = structlog.get_logger(__name__)


@checkout.command(part_of="Order")
class RecordPaymentFailure:
    """The gateway reported that one of the customer's payment attempts failed."""

    order_number = String(required=True, max_length=30)
    payment_id = String(max_length=100)
    reason = String(required=True, max_length=500)


@checkout.command_handler(part_of=Order)
class PaymentFailureHandler:
    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_number)
        if not order.is_pending():
            logger.info("payment_failure_ignored", order_number=order.order_number, status=order.status)
            return "ignored"

        order.record_failed_attempt(command.payment_id, command.reason)
        repo.add(order)
        logger.info(
            "payment_attempt_failed",
            order_number=order.order_number,
            payment_id=command.payment_id,
            attempt=order.failed_attempts,
        )
        return "attempt_failed"


def _payment_entity(event: dict) -> dict:
    return event.get("payload", {}).get("payment", {}).get("entity", {})


def handle_gateway_event(event: dict) -> str:
    """Apply a verified webhook event and return what happened to the order."""
    event_type = event.get("event")
    payment = _payment_entity(event)
    order_number = (payment.get("notes") or {}).get("order_number")

    if event_type not in ("payment.captured", "payment.failed"):
        logger.info("webhook_event_ignored", event_type=event_type)
        return "ignored"

    order = find_order(order_number) if order_number else None
    if order is None:
        logger.warning("webhook_order_unknown", event_type=event_type, order_number=order_number)
        return "ignored"

    if order.payment_reference != payment.get("order_id"):
        logger.warning(
            "webhook_gateway_order_mismatch",
            order_number=order_number,
            gateway_order_id=payment.get("order_id"),
            expected_gateway_order_id=order.payment_reference,
        )
        return "ignored"

    if event_type == "payment.failed":
        reason = payment.get("error_description") or "Payment failed at the gateway"
        return current_domain.process(
            RecordPaymentFailure(order_number=order_number, payment_id=payment.get("id"), reason=reason),
            asynchronous=False,
        )

    try:
        result = confirm_order(order_number, payment["id"])
    except CheckoutError as exc:
        # Captured money on a non-pending order is settled out of band.
        logger.error("webhook_capture_unapplied", order_number=order_number, kind=exc.kind.value)
        return "needs_reconciliation"
    return "already_confirmed" if result.already_confirmed else "confirmed"
