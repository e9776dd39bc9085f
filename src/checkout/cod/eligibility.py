"""Cash-on-delivery eligibility gate.

COD is allowed only when every product in the cart allows it. The products
that don't are returned by name so the client can tell the customer why.
"""

from dataclasses import dataclass, field

import structlog

from checkout.cart.pricing import CartSnapshot, snapshot_cart
from checkout.errors import CheckoutError, CheckoutErrorKind

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CodEligibility:
    eligible: bool
    cart_revision: int
    disqualifying_items: list[str] = field(default_factory=list)

    @property
    def message(self) -> str | None:
        if self.eligible:
            return None
        return f"COD is not available for: {', '.join(self.disqualifying_items)}"

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "cart_revision": self.cart_revision,
            "disqualifying_items": list(self.disqualifying_items),
            "message": self.message,
        }


def evaluate_cod(snapshot: CartSnapshot) -> CodEligibility:
    if snapshot.is_empty:
        raise CheckoutError(CheckoutErrorKind.CART_EMPTY, "Your cart is empty")

    blocked = [line.name for line in snapshot.lines if not line.is_cod_available]
    return CodEligibility(eligible=not blocked, cart_revision=snapshot.revision, disqualifying_items=blocked)


def check_cod(customer_id) -> CodEligibility:
    result = evaluate_cod(snapshot_cart(customer_id))
    logger.debug("cod_checked", customer_id=str(customer_id), eligible=result.eligible)
    return result
