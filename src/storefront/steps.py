"""Checkout step state machine.

A pure transition function over the three checkout steps. It knows nothing
about storage, URLs, or HTTP: callers gather the facts it needs into a
StepContext and apply the StepDecision it returns.

    address → review → payment        (advance, gated)
    payment → review → address        (retreat, always legal)
"""

from dataclasses import dataclass
from typing import Literal

Step = Literal["address", "review", "payment"]
GuardReason = Literal["address_required", "cart_empty", "cod_check_stale", "submit_required", "unknown_step"]

STEPS: tuple[Step, ...] = ("address", "review", "payment")

GUARD_MESSAGES = {
    "address_required": "Please select a delivery address",
    "cart_empty": "Your cart is empty",
    "cod_check_stale": "Your cart changed. Checking payment options again.",
    "submit_required": "Choose a payment method and place your order",
    "unknown_step": "Unknown checkout step",
}


@dataclass(frozen=True)
class StepContext:
    current_step: Step
    selected_address_id: str | None
    known_address_ids: frozenset[str]
    cart_revision: int
    cod_checked_revision: int | None = None
    cart_has_items: bool = True

    @property
    def address_resolves(self) -> bool:
        return self.selected_address_id is not None and self.selected_address_id in self.known_address_ids

    @property
    def cod_check_fresh(self) -> bool:
        return self.cod_checked_revision is not None and self.cod_checked_revision == self.cart_revision


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class Retreat:
    pass


@dataclass(frozen=True)
class Enter:
    step: str


@dataclass(frozen=True)
class Restore:
    """Re-entry after a reload; lands on the furthest legal step up to ``step``."""

    step: str | None


StepEvent = Advance | Retreat | Enter | Restore


@dataclass(frozen=True)
class StepDecision:
    allowed: bool
    next_step: Step
    guard_reason: GuardReason | None = None

    @property
    def message(self) -> str | None:
        return GUARD_MESSAGES[self.guard_reason] if self.guard_reason else None


def parse_step(value: str | None) -> Step:
    """Anything that is not a known step means the first step."""
    return value if value in STEPS else "address"


def _gate(context: StepContext, target: Step) -> GuardReason | None:
    """The first unmet requirement for standing on ``target``."""
    if target == "address":
        return None
    if not context.address_resolves:
        return "address_required"
    if target == "payment" and not context.cart_has_items:
        return "cart_empty"
    if target == "payment" and not context.cod_check_fresh:
        return "cod_check_stale"
    return None


def resolve_step_transition(context: StepContext, event: StepEvent) -> StepDecision:
    current = context.current_step

    if isinstance(event, Retreat):
        return StepDecision(allowed=True, next_step=STEPS[max(STEPS.index(current) - 1, 0)])

    if isinstance(event, Advance):
        if current == "payment":
            return StepDecision(allowed=False, next_step=current, guard_reason="submit_required")
        target = STEPS[STEPS.index(current) + 1]
        reason = _gate(context, target)
        if reason == "address_required":
            return StepDecision(allowed=False, next_step="address", guard_reason=reason)
        if reason:
            return StepDecision(allowed=False, next_step=current, guard_reason=reason)
        return StepDecision(allowed=True, next_step=target)

    if isinstance(event, Enter):
        if event.step not in STEPS:
            return StepDecision(allowed=False, next_step=current, guard_reason="unknown_step")
        reason = _gate(context, event.step)
        if reason == "address_required":
            return StepDecision(allowed=False, next_step="address", guard_reason=reason)
        if reason:
            return StepDecision(allowed=False, next_step=current, guard_reason=reason)
        return StepDecision(allowed=True, next_step=event.step)

    if isinstance(event, Restore):
        requested = parse_step(event.step)
        reason = _gate(context, requested)
        # address has no gate, so the walk back always lands somewhere
        landing = next(s for s in reversed(STEPS[: STEPS.index(requested) + 1]) if _gate(context, s) is None)
        return StepDecision(allowed=reason is None, next_step=landing, guard_reason=reason)

    raise TypeError(f"Unsupported step event: {event!r}")
