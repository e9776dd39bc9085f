"""Order submission: intake, gateway hand-off, and verification.

``CheckoutProtocol.submit()`` is the terminal action of the payment step.
Every way it can end maps to one SubmitOutcome. The outcomes separate
"no charge happened, try again" from "you may have been charged, do not pay
again", because the customer has to act in opposite ways.
"""

from dataclasses import dataclass, field
from enum import Enum

import structlog

from checkout.errors import CheckoutError, CheckoutErrorKind
from storefront import messages
from storefront.api_client import TransientError
from storefront.bridge import CheckoutOptions, GatewayCancelled, GatewaySuccess, PaymentGatewayBridge, SdkLoadFailed
from storefront.controller import CheckoutStepController
from storefront.coupons import CouponRejected
from storefront.navigation import confirmation_url

logger = structlog.get_logger(__name__)


class OutcomeKind(Enum):
    CONFIRMED = "confirmed"
    VALIDATION_ERROR = "validation_error"
    REJECTED = "rejected"
    ADDRESS_INVALID = "address_invalid"
    GATEWAY_NOT_CONFIGURED = "gateway_not_configured"
    CANCELLED = "cancelled"
    SDK_LOAD_FAILED = "sdk_load_failed"
    RETRYABLE = "retryable"
    PAYMENT_UNCONFIRMED = "payment_unconfirmed"
    IN_PROGRESS = "in_progress"
    ALREADY_COMPLETED = "already_completed"


@dataclass(frozen=True)
class SubmitOutcome:
    kind: OutcomeKind
    message: str
    order_number: str | None = None
    details: dict = field(default_factory=dict)

    @property
    def charge_possible(self) -> bool:
        """True when the gateway reported a payment we could not confirm."""
        return self.kind == OutcomeKind.PAYMENT_UNCONFIRMED


class CheckoutProtocol:
    def __init__(self, controller: CheckoutStepController, bridge: PaymentGatewayBridge, verify_attempts: int = 3):
        self.controller = controller
        self.api = controller.api
        self.bridge = bridge
        self.verify_attempts = verify_attempts

    def submit(self) -> SubmitOutcome:
        if self.controller.completed:
            return SubmitOutcome(OutcomeKind.ALREADY_COMPLETED, messages.ALREADY_COMPLETED)
        if not self.controller.try_begin_submit():
            return SubmitOutcome(OutcomeKind.IN_PROGRESS, messages.SUBMISSION_IN_PROGRESS)
        try:
            if self.controller.unconfirmed_payment is not None:
                order_number, payment = self.controller.unconfirmed_payment
                logger.info("payment_reverification", order_number=order_number)
                return self._verify(order_number, payment)
            return self._submit()
        finally:
            self.controller.end_submit()

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _submit(self) -> SubmitOutcome:
        controller = self.controller
        session = controller.session

        if not session.selected_address_id:
            return SubmitOutcome(OutcomeKind.VALIDATION_ERROR, messages.SELECT_ADDRESS)
        if not session.selected_payment_method:
            return SubmitOutcome(OutcomeKind.VALIDATION_ERROR, messages.SELECT_PAYMENT_METHOD)
        if session.current_step != "payment":
            return SubmitOutcome(OutcomeKind.VALIDATION_ERROR, messages.FINISH_PREVIOUS_STEPS)

        try:
            if not controller.refresh_cart()["lines"]:
                return SubmitOutcome(OutcomeKind.VALIDATION_ERROR, messages.CART_EMPTY)

            coupon = controller.revalidate_coupon()
            if isinstance(coupon, CouponRejected):
                controller.enter("review")
                return SubmitOutcome(OutcomeKind.REJECTED, coupon.message, details={"reason": coupon.reason})

            if session.selected_payment_method == "cod":
                cod = controller.cod_status()
                if not cod.eligible:
                    return SubmitOutcome(
                        OutcomeKind.REJECTED,
                        cod.message,
                        details={"disqualifying_items": list(cod.disqualifying_items)},
                    )

            applied = controller.session.applied_coupon
            result = self.api.place_order(
                customer_id=controller.customer_id,
                address_id=session.selected_address_id,
                payment_method=session.selected_payment_method,
                coupon_code=applied.code if applied else None,
                checkout_session_id=session.checkout_session_id,
            )
        except CheckoutError as exc:
            return self._intake_failed(exc)
        except TransientError as exc:
            logger.warning("order_intake_transient_failure", error=str(exc))
            return SubmitOutcome(OutcomeKind.RETRYABLE, messages.NO_CHARGE_RETRY)

        order_number = result["order_number"]
        if result["status"] == "confirmed":
            return self._complete(order_number)
        return self._pay(order_number, result)

    def _intake_failed(self, exc: CheckoutError) -> SubmitOutcome:
        controller = self.controller
        logger.info("order_intake_rejected", kind=exc.kind.value)

        if exc.kind == CheckoutErrorKind.GATEWAY_NOT_CONFIGURED:
            return SubmitOutcome(OutcomeKind.GATEWAY_NOT_CONFIGURED, messages.GATEWAY_NOT_CONFIGURED)
        if exc.kind == CheckoutErrorKind.ADDRESS_NOT_FOUND:
            controller.address_invalidated()
            return SubmitOutcome(OutcomeKind.ADDRESS_INVALID, messages.ADDRESS_GONE)
        if exc.kind == CheckoutErrorKind.COUPON_REJECTED:
            controller.remove_coupon()
            controller.enter("review")
            return SubmitOutcome(OutcomeKind.REJECTED, exc.message, details=exc.details)
        if exc.kind == CheckoutErrorKind.COD_UNAVAILABLE:
            controller.cod_gate.invalidate()
            return SubmitOutcome(OutcomeKind.REJECTED, exc.message, details=exc.details)
        if exc.kind == CheckoutErrorKind.CART_EMPTY:
            return SubmitOutcome(OutcomeKind.VALIDATION_ERROR, messages.CART_EMPTY)
        if exc.kind == CheckoutErrorKind.GATEWAY_UNAVAILABLE:
            return SubmitOutcome(OutcomeKind.RETRYABLE, messages.NO_CHARGE_RETRY)
        return SubmitOutcome(OutcomeKind.VALIDATION_ERROR, exc.message, details=exc.details)

    def _pay(self, order_number: str, result: dict) -> SubmitOutcome:
        options = CheckoutOptions.from_intent(result["gateway"], order_number)
        outcome = self.bridge.open(options)

        if isinstance(outcome, GatewayCancelled):
            # The pending order stays; the next submit reuses its intent
            return SubmitOutcome(OutcomeKind.CANCELLED, messages.PAYMENT_CANCELLED, order_number=order_number)
        if isinstance(outcome, SdkLoadFailed):
            return SubmitOutcome(
                OutcomeKind.SDK_LOAD_FAILED,
                messages.SDK_LOAD_FAILED,
                order_number=order_number,
                details={"reason": outcome.reason},
            )
        return self._verify(order_number, outcome)

    def _verify(self, order_number: str, payment: GatewaySuccess) -> SubmitOutcome:
        for attempt in range(1, self.verify_attempts + 1):
            try:
                self.api.verify_payment(order_number, payment.gateway_order_id, payment.payment_id, payment.signature)
            except TransientError as exc:
                logger.warning("payment_verification_retry", order_number=order_number, attempt=attempt, error=str(exc))
                continue
            except CheckoutError as exc:
                logger.error("payment_verification_failed", order_number=order_number, kind=exc.kind.value)
                break
            return self._complete(order_number)

        # Never reopen the gateway for this order; later submits only re-verify
        self.controller.unconfirmed_payment = (order_number, payment)
        return SubmitOutcome(
            OutcomeKind.PAYMENT_UNCONFIRMED,
            messages.payment_unconfirmed(order_number),
            order_number=order_number,
        )

    def _complete(self, order_number: str) -> SubmitOutcome:
        self.controller.teardown()
        self.controller.navigator.push(confirmation_url(order_number))
        logger.info("checkout_completed", order_number=order_number)
        return SubmitOutcome(OutcomeKind.CONFIRMED, messages.ORDER_PLACED, order_number=order_number)
