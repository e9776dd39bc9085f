"""Tests for the pure checkout step transition function."""

import pytest
from storefront.steps import (
    Advance,
    Enter,
    Restore,
    Retreat,
    StepContext,
    parse_step,
    resolve_step_transition,
)


def _context(step="address", address="addr-001", known=("addr-001",), revision=1, cod_revision=1):
    return StepContext(
        current_step=step,
        selected_address_id=address,
        known_address_ids=frozenset(known),
        cart_revision=revision,
        cod_checked_revision=cod_revision,
    )


class TestAdvance:
    def test_address_to_review(self):
        decision = resolve_step_transition(_context("address"), Advance())
        assert decision.allowed is True
        assert decision.next_step == "review"

    def test_review_to_payment(self):
        decision = resolve_step_transition(_context("review"), Advance())
        assert decision.next_step == "payment"

    def test_blocked_without_address(self):
        decision = resolve_step_transition(_context("address", address=None), Advance())
        assert decision.allowed is False
        assert decision.next_step == "address"
        assert decision.message == "Please select a delivery address"

    def test_blocked_when_address_no_longer_exists(self):
        decision = resolve_step_transition(_context("address", known=("addr-002",)), Advance())
        assert decision.guard_reason == "address_required"

    def test_payment_blocked_on_stale_cod_check(self):
        decision = resolve_step_transition(_context("review", revision=2, cod_revision=1), Advance())
        assert decision.allowed is False
        assert decision.next_step == "review"
        assert decision.guard_reason == "cod_check_stale"

    def test_payment_blocked_before_cod_check(self):
        decision = resolve_step_transition(_context("review", cod_revision=None), Advance())
        assert decision.guard_reason == "cod_check_stale"

    def test_deleted_address_sends_review_back_to_address(self):
        decision = resolve_step_transition(_context("review", known=()), Advance())
        assert decision.allowed is False
        assert decision.next_step == "address"
        assert decision.guard_reason == "address_required"

    def test_payment_blocked_on_empty_cart(self):
        context = StepContext(
            current_step="review",
            selected_address_id="addr-001",
            known_address_ids=frozenset({"addr-001"}),
            cart_revision=2,
            cod_checked_revision=None,
            cart_has_items=False,
        )
        decision = resolve_step_transition(context, Advance())
        assert decision.next_step == "review"
        assert decision.guard_reason == "cart_empty"
        assert decision.message == "Your cart is empty"

    def test_no_step_after_payment(self):
        decision = resolve_step_transition(_context("payment"), Advance())
        assert decision.allowed is False
        assert decision.next_step == "payment"
        assert decision.guard_reason == "submit_required"


class TestRetreat:
    @pytest.mark.parametrize(
        ("current", "expected"),
        [("payment", "review"), ("review", "address"), ("address", "address")],
    )
    def test_always_allowed(self, current, expected):
        decision = resolve_step_transition(_context(current, address=None, cod_revision=None), Retreat())
        assert decision.allowed is True
        assert decision.next_step == expected


class TestEnter:
    def test_jump_back_is_allowed(self):
        assert resolve_step_transition(_context("payment"), Enter("address")).next_step == "address"

    def test_jump_ahead_when_requirements_met(self):
        decision = resolve_step_transition(_context("address"), Enter("payment"))
        assert decision.allowed is True
        assert decision.next_step == "payment"

    def test_missing_address_forces_address_step(self):
        decision = resolve_step_transition(_context("review", address=None), Enter("payment"))
        assert decision.allowed is False
        assert decision.next_step == "address"

    def test_unknown_step(self):
        decision = resolve_step_transition(_context("review"), Enter("shipping"))
        assert decision.allowed is False
        assert decision.next_step == "review"
        assert decision.guard_reason == "unknown_step"


class TestRestore:
    def test_restores_requested_step(self):
        decision = resolve_step_transition(_context("address"), Restore("payment"))
        assert decision.allowed is True
        assert decision.next_step == "payment"

    def test_stale_address_lands_on_address(self):
        decision = resolve_step_transition(_context("address", known=()), Restore("payment"))
        assert decision.next_step == "address"
        assert decision.guard_reason == "address_required"

    def test_stale_cod_check_lands_on_review(self):
        decision = resolve_step_transition(_context("address", revision=3, cod_revision=1), Restore("payment"))
        assert decision.allowed is False
        assert decision.next_step == "review"

    def test_missing_step_means_address(self):
        assert resolve_step_transition(_context("review"), Restore(None)).next_step == "address"


class TestMonotonicity:
    def test_never_skips_forward_past_a_gate(self):
        # Every allowed forward move from address passes through review first
        context = _context("address")
        first = resolve_step_transition(context, Advance())
        second = resolve_step_transition(_context(first.next_step), Advance())
        assert [first.next_step, second.next_step] == ["review", "payment"]


def test_parse_step():
    assert parse_step("review") == "review"
    assert parse_step("bogus") == "address"
    assert parse_step(None) == "address"
