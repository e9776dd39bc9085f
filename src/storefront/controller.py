"""Checkout step controller.

Owns the checkout session for one customer. Every mutation goes through a
setter here. Each one persists the selections to session storage first,
then mirrors the current step into the URL, so a reload can always rebuild
the same state through restore().
"""

import threading
from dataclasses import dataclass

import structlog

from storefront import messages
from storefront.cod import CodGate, CodStatus
from storefront.coupons import CouponApplier, CouponRejected
from storefront.navigation import Navigator, checkout_url, step_from_url
from storefront.session import PAYMENT_METHODS, AppliedCoupon, CheckoutSession
from storefront.steps import (
    Advance,
    Enter,
    Restore,
    Retreat,
    StepContext,
    StepDecision,
    StepEvent,
    resolve_step_transition,
)
from storefront.storage import SessionStore, clear_session, load_session, save_session

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SelectionResult:
    accepted: bool
    message: str | None = None
    disqualifying_items: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReviewPricing:
    subtotal: float
    discount: float
    delivery_fee: float
    total: float
    coupon: AppliedCoupon | None = None


class CheckoutStepController:
    def __init__(
        self,
        customer_id: str,
        api,
        store: SessionStore,
        navigator: Navigator,
        cod_gate: CodGate | None = None,
        coupons: CouponApplier | None = None,
    ) -> None:
        self.customer_id = customer_id
        self.api = api
        self.store = store
        self.navigator = navigator
        self.cod_gate = cod_gate or CodGate(api, customer_id)
        self.coupons = coupons or CouponApplier(api, customer_id)

        self.session = CheckoutSession()
        self.addresses: list[dict] = []
        self.cart: dict = {"lines": [], "subtotal": 0.0, "delivery_fee": 0.0, "category_ids": [], "revision": 0}
        self.last_error: str | None = None
        self.completed = False
        # (order number, gateway success payload) once a charge may have happened
        self.unconfirmed_payment = None
        self._submit_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Live facts
    # -------------------------------------------------------------------
    @property
    def address_ids(self) -> frozenset[str]:
        return frozenset(str(a["id"]) for a in self.addresses)

    @property
    def subtotal(self) -> float:
        return float(self.cart["subtotal"])

    def refresh_addresses(self) -> list[dict]:
        self.addresses = self.api.list_addresses(self.customer_id)
        return self.addresses

    def refresh_cart(self) -> dict:
        self.cart = self.api.get_cart(self.customer_id)
        if self.cod_gate.checked_revision not in (None, self.cart["revision"]):
            logger.info("cart_changed_during_checkout", revision=self.cart["revision"])
            self.cod_gate.invalidate()
        return self.cart

    def cod_status(self) -> CodStatus:
        status = self.cod_gate.status_for(self.cart["revision"])
        if status.cart_revision != self.cart["revision"]:
            # The server saw a newer cart than we hold
            self.refresh_cart()
        return status

    def _context(self) -> StepContext:
        return StepContext(
            current_step=self.session.current_step,
            selected_address_id=self.session.selected_address_id,
            known_address_ids=self.address_ids,
            cart_revision=self.cart["revision"],
            cod_checked_revision=self.cod_gate.checked_revision,
            cart_has_items=bool(self.cart["lines"]),
        )

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def _commit(self) -> None:
        save_session(self.store, self.session)
        self.navigator.replace(checkout_url(self.session.current_step))

    # -------------------------------------------------------------------
    # Step transitions
    # -------------------------------------------------------------------
    def _target(self, event: StepEvent) -> str | None:
        if isinstance(event, Advance):
            return {"address": "review", "review": "payment"}.get(self.session.current_step)
        if isinstance(event, Enter | Restore):
            return event.step
        return None

    def _apply(self, event: StepEvent, addresses_fresh: bool = False) -> StepDecision:
        target = self._target(event)
        if target in ("review", "payment") and not addresses_fresh:
            # The address may have been deleted since it was chosen
            self.refresh_addresses()
        if target == "payment" and self.session.selected_address_id in self.address_ids:
            self.refresh_cart()
            if self.cart["lines"]:
                self.cod_status()

        previous = (self.session.current_step, self.session.selected_address_id)
        decision = resolve_step_transition(self._context(), event)

        if decision.guard_reason == "address_required" and self.session.selected_address_id is not None:
            if self.session.selected_address_id not in self.address_ids:
                logger.info("stale_address_dropped", address_id=self.session.selected_address_id)
                self.session.selected_address_id = None

        self.last_error = decision.message
        self.session.current_step = decision.next_step
        if decision.allowed or (self.session.current_step, self.session.selected_address_id) != previous:
            self._commit()
        return decision

    def enter(self, step: str) -> StepDecision:
        return self._apply(Enter(step))

    def advance(self) -> StepDecision:
        return self._apply(Advance())

    def retreat(self) -> StepDecision:
        return self._apply(Retreat())

    def restore(self, url: str | None = None) -> StepDecision:
        """Rebuild the session after a reload and re-check it against live data."""
        self.session = load_session(self.store)
        self.refresh_addresses()
        self.refresh_cart()
        decision = self._apply(Restore(step_from_url(url or self.navigator.current_url)), addresses_fresh=True)
        self._commit()
        return decision

    def address_invalidated(self) -> StepDecision:
        """The server no longer knows the selected address: go back and pick again."""
        self.refresh_addresses()
        if self.session.selected_address_id not in self.address_ids:
            self.session.selected_address_id = None
        return self.enter("address")

    # -------------------------------------------------------------------
    # Selections
    # -------------------------------------------------------------------
    def select_address(self, address_id: str) -> SelectionResult:
        if str(address_id) not in self.address_ids:
            self.refresh_addresses()
        if str(address_id) not in self.address_ids:
            self.last_error = messages.ADDRESS_GONE
            return SelectionResult(accepted=False, message=messages.ADDRESS_GONE)

        self.session.selected_address_id = str(address_id)
        self.last_error = None
        self._commit()
        return SelectionResult(accepted=True)

    def select_payment_method(self, method: str) -> SelectionResult:
        """Choose COD or online. An ineligible COD choice is refused with the reason."""
        if method not in PAYMENT_METHODS:
            return SelectionResult(accepted=False, message=messages.SELECT_PAYMENT_METHOD)

        if method == "cod":
            status = self.cod_status()
            if not status.eligible:
                self.last_error = status.message
                return SelectionResult(
                    accepted=False,
                    message=status.message,
                    disqualifying_items=status.disqualifying_items,
                )

        self.session.selected_payment_method = method
        self.last_error = None
        self._commit()
        return SelectionResult(accepted=True)

    def apply_coupon(self, code: str) -> AppliedCoupon | CouponRejected:
        result = self.coupons.apply(code, self.subtotal, self.cart["category_ids"])
        if isinstance(result, CouponRejected):
            self.last_error = result.message
            return result

        self.session.applied_coupon = result
        self.last_error = None
        self._commit()
        return result

    def remove_coupon(self) -> None:
        self.session.applied_coupon = None
        self._commit()

    def revalidate_coupon(self) -> AppliedCoupon | CouponRejected | None:
        """Check the stored coupon against the current subtotal; drop it if it no longer applies."""
        applied = self.session.applied_coupon
        if applied is None:
            return None

        result = self.coupons.revalidate(applied, self.subtotal, self.cart["category_ids"])
        if isinstance(result, CouponRejected):
            logger.info("applied_coupon_rejected", code=applied.code, reason=result.reason)
            self.session.applied_coupon = None
            self.last_error = result.message
        else:
            self.session.applied_coupon = result
        self._commit()
        return result

    def price_review(self) -> ReviewPricing:
        """Totals for the review step, never from a cached discount."""
        self.refresh_cart()
        coupon = self.revalidate_coupon()
        discount = coupon.discount_amount if isinstance(coupon, AppliedCoupon) else 0.0
        delivery_fee = float(self.cart["delivery_fee"])
        return ReviewPricing(
            subtotal=self.subtotal,
            discount=discount,
            delivery_fee=delivery_fee,
            total=round(self.subtotal - discount + delivery_fee, 2),
            coupon=self.session.applied_coupon,
        )

    # -------------------------------------------------------------------
    # Submission guard & teardown
    # -------------------------------------------------------------------
    def try_begin_submit(self) -> bool:
        return self._submit_lock.acquire(blocking=False)

    def end_submit(self) -> None:
        self._submit_lock.release()

    @property
    def submitting(self) -> bool:
        return self._submit_lock.locked()

    def teardown(self) -> None:
        """End the checkout: forget every stored selection."""
        clear_session(self.store)
        self.session = CheckoutSession()
        self.unconfirmed_payment = None
        self.completed = True
