"""
Unit tests for the installment plan lifecycle.

These tests verify:
1. Payments are booked against the earliest pending installment
2. Consecutive failures put a plan in default
3. Terminal plans never change again
4. Invariants hold under arbitrary event interleavings
"""

import random
from datetime import date

import pytest

from financing_gateway.domain.entities import (
    FAILED_PAYMENT_THRESHOLD,
    BillingConfirmed,
    InstallmentPlan,
    PaymentFailed,
    PaymentStatus,
    PlanStatus,
    PaymentSucceeded,
    TransitionResult,
    earliest_pending,
)
from financing_gateway.domain.exceptions import InvalidTransitionException
from financing_gateway.service.schedule import generate_schedule
from tests.support import at, make_template


def open_plan(total_cents: int = 40000, payments: int = 4, billing_ref: str = "price_1") -> InstallmentPlan:
    template = make_template(number_of_payments=payments)
    quote = generate_schedule(template, total_cents, date(2025, 1, 1))
    plan = InstallmentPlan.open(
        customer_id="cust_1",
        template_id=template.template_id,
        product_label="Sofa",
        frequency=template.frequency,
        total_cents=quote.total_cents,
        down_payment_cents=quote.down_payment_cents,
        processing_fee_cents=quote.processing_fee_cents,
        financed_cents=quote.financed_cents,
        installment_cents=quote.installment_cents,
        payment_schedule=quote.payments,
    )
    if billing_ref is not None:
        plan.attach_billing(billing_ref)
    return plan


def active_plan(**kwargs) -> InstallmentPlan:
    plan = open_plan(**kwargs)
    plan.confirm_billing(at(1))
    return plan


# =============================================================================
# Opening and Confirmation Tests
# =============================================================================

class TestOpenAndConfirm:
    """Tests for plan creation and billing confirmation."""

    def test_new_plan_is_pending_with_materialized_schedule(self):
        plan = open_plan()

        assert plan.status == PlanStatus.PENDING
        assert plan.number_of_payments == 4
        assert plan.payments_completed == 0
        assert plan.next_payment_date == date(2025, 1, 15)
        assert plan.check_invariants() == []

    def test_confirmation_activates_pending_plan(self):
        plan = open_plan()

        outcome = plan.confirm_billing(at(2))

        assert outcome.result == TransitionResult.ACTIVATED
        assert outcome.from_status == PlanStatus.PENDING
        assert outcome.to_status == PlanStatus.ACTIVE
        assert plan.activated_at == at(2)

    def test_second_confirmation_is_noop(self):
        plan = active_plan()

        outcome = plan.confirm_billing(at(3))

        assert outcome.changed is False
        assert plan.activated_at == at(1)

    def test_billing_ref_cannot_be_replaced(self):
        plan = open_plan(billing_ref="price_1")

        with pytest.raises(InvalidTransitionException):
            plan.attach_billing("price_2")

    def test_attaching_same_billing_ref_again_is_allowed(self):
        plan = open_plan(billing_ref="price_1")

        plan.attach_billing("price_1")

        assert plan.external_billing_ref == "price_1"


# =============================================================================
# Payment Tests
# =============================================================================

class TestRecordPayment:
    """Tests for booking successful charges."""

    def test_payment_marks_earliest_pending_installment(self):
        plan = active_plan()

        outcome = plan.record_payment("pi_1", 10000, at(15))

        first = plan.payment_schedule[0]
        assert outcome.result == TransitionResult.PAYMENT_RECORDED
        assert first.status == PaymentStatus.PAID
        assert first.paid_at == at(15)
        assert first.external_payment_ref == "pi_1"
        assert plan.payments_completed == 1
        assert plan.total_paid_cents == 10000
        assert plan.next_payment_date == date(2025, 1, 29)

    def test_same_payment_ref_is_idempotent(self):
        plan = active_plan()
        plan.record_payment("pi_1", 10000, at(15))

        outcome = plan.record_payment("pi_1", 10000, at(16))

        assert outcome.result == TransitionResult.DUPLICATE
        assert plan.payments_completed == 1
        assert plan.total_paid_cents == 10000

    def test_payment_on_pending_plan_activates_it(self):
        plan = open_plan()

        outcome = plan.record_payment("pi_1", 10000, at(15))

        assert plan.status == PlanStatus.ACTIVE
        assert plan.activated_at == at(15)
        assert outcome.from_status == PlanStatus.PENDING
        assert outcome.to_status == PlanStatus.ACTIVE

    def test_charged_amount_is_recorded_without_matching(self):
        plan = active_plan()

        plan.record_payment("pi_1", 9999, at(15))

        assert plan.payment_schedule[0].charged_cents == 9999
        assert plan.total_paid_cents == 10000

    def test_earliest_pending_ignores_storage_order(self):
        plan = active_plan()
        plan.payment_schedule.reverse()

        assert earliest_pending(plan.payment_schedule).payment_number == 1

        plan.record_payment("pi_1", 10000, at(15))

        paid = [r for r in plan.payment_schedule if r.status == PaymentStatus.PAID]
        assert [r.payment_number for r in paid] == [1]

    def test_final_payment_completes_plan(self):
        """Four successes against four installments complete the plan."""
        plan = active_plan()

        outcomes = [plan.record_payment(f"pi_{n}", 10000, at(10 + n)) for n in range(1, 5)]

        assert [o.result for o in outcomes] == [
            TransitionResult.PAYMENT_RECORDED,
            TransitionResult.PAYMENT_RECORDED,
            TransitionResult.PAYMENT_RECORDED,
            TransitionResult.COMPLETED,
        ]
        assert plan.status == PlanStatus.COMPLETED
        assert plan.completed_at == at(14)
        assert plan.next_payment_date is None
        assert plan.remaining_cents == 0
        assert outcomes[-1].requires_billing_cancellation is True
        assert plan.billing_cancellation_pending is True
        assert plan.check_invariants() == []

    def test_extra_payment_after_completion_is_noop(self):
        plan = active_plan()
        for n in range(1, 5):
            plan.record_payment(f"pi_{n}", 10000, at(10 + n))

        outcome = plan.record_payment("pi_5", 10000, at(20))

        assert outcome.changed is False
        assert outcome.requires_billing_cancellation is False
        assert plan.payments_completed == 4
        assert plan.total_paid_cents == 40000

    def test_completion_without_billing_needs_no_cancellation(self):
        plan = open_plan(payments=1, billing_ref=None)

        outcome = plan.record_payment("pi_1", 40000, at(15))

        assert outcome.result == TransitionResult.COMPLETED
        assert outcome.requires_billing_cancellation is False
        assert plan.billing_cancellation_pending is False


# =============================================================================
# Failure and Default Tests
# =============================================================================

class TestRecordFailure:
    """Tests for failed charges and default."""

    def test_failure_increments_counter_and_notes_reason(self):
        plan = active_plan()

        outcome = plan.record_failure("card_declined", at(15))

        assert outcome.result == TransitionResult.FAILURE_RECORDED
        assert plan.failed_payment_attempts == 1
        assert plan.last_failed_payment_at == at(15)
        assert plan.payment_schedule[0].failure_reason == "card_declined"
        assert plan.payment_schedule[0].status == PaymentStatus.PENDING

    def test_threshold_consecutive_failures_default_plan(self):
        plan = active_plan()

        outcomes = [
            plan.record_failure("card_declined", at(15 + n))
            for n in range(FAILED_PAYMENT_THRESHOLD)
        ]

        assert outcomes[-1].result == TransitionResult.DEFAULTED
        assert outcomes[-1].requires_billing_cancellation is True
        assert plan.status == PlanStatus.DEFAULTED
        assert plan.defaulted_at == at(15 + FAILED_PAYMENT_THRESHOLD - 1)
        assert plan.payment_schedule[0].status == PaymentStatus.FAILED
        assert plan.check_invariants() == []

    def test_success_resets_failure_count(self):
        plan = active_plan()
        plan.record_failure("card_declined", at(15))
        plan.record_failure("card_declined", at(16))

        plan.record_payment("pi_1", 10000, at(17))
        plan.record_failure("card_declined", at(29))
        plan.record_failure("card_declined", at(30))

        assert plan.status == PlanStatus.ACTIVE
        assert plan.failed_payment_attempts == 2

    def test_failure_on_pending_plan_activates_it(self):
        plan = open_plan()

        plan.record_failure("card_declined", at(15))

        assert plan.status == PlanStatus.ACTIVE
        assert plan.failed_payment_attempts == 1


# =============================================================================
# Cancellation and Terminal State Tests
# =============================================================================

class TestTerminalStates:
    """Tests for cancellation and terminal immutability."""

    def test_cancel_active_plan(self):
        plan = active_plan()

        outcome = plan.cancel(reason="customer request", actor="admin_1")

        assert outcome.result == TransitionResult.CANCELLED
        assert outcome.requires_billing_cancellation is True
        assert plan.status == PlanStatus.CANCELLED
        assert plan.cancelled_by == "admin_1"
        assert plan.cancel_reason == "Cancelled by admin_1: customer request"
        assert plan.cancelled_at is not None

    def test_cancel_pending_plan(self):
        plan = open_plan()

        outcome = plan.cancel(reason="changed mind", actor="cust_1")

        assert outcome.from_status == PlanStatus.PENDING
        assert plan.status == PlanStatus.CANCELLED

    @pytest.mark.parametrize("finish", ["complete", "default", "cancel"])
    def test_terminal_plan_cannot_be_cancelled(self, finish):
        plan = active_plan(payments=1, total_cents=10000)
        if finish == "complete":
            plan.record_payment("pi_1", 10000, at(15))
        elif finish == "default":
            for n in range(FAILED_PAYMENT_THRESHOLD):
                plan.record_failure("card_declined", at(15 + n))
        else:
            plan.cancel(reason="first", actor="admin")

        with pytest.raises(InvalidTransitionException):
            plan.cancel(reason="again", actor="admin")

    def test_events_after_default_are_ignored(self):
        plan = active_plan()
        for n in range(FAILED_PAYMENT_THRESHOLD):
            plan.record_failure("card_declined", at(15 + n))
        snapshot = (plan.status, plan.payments_completed, plan.failed_payment_attempts)

        for event in (
            PaymentSucceeded("price_1", 10000, "pi_late", at(25)),
            PaymentFailed("price_1", "card_declined", at(26)),
            BillingConfirmed("price_1", at(27)),
        ):
            outcome = plan.apply(event)
            assert outcome.changed is False
            assert outcome.requires_billing_cancellation is False

        assert (plan.status, plan.payments_completed, plan.failed_payment_attempts) == snapshot

    def test_settling_cancellation_clears_flag(self):
        plan = active_plan()
        plan.cancel(reason="fraud", actor="admin")

        plan.settle_billing_cancellation()

        assert plan.billing_cancellation_pending is False
        assert plan.status == PlanStatus.CANCELLED


# =============================================================================
# Interleaving Tests
# =============================================================================

class TestRandomInterleavings:
    """Invariants hold for any sequence of events."""

    @pytest.mark.parametrize("seed", range(25))
    def test_invariants_hold_for_random_event_sequences(self, seed):
        rng = random.Random(seed)
        plan = open_plan(total_cents=rng.randint(1000, 250000), payments=rng.randint(1, 8))
        refs = [f"pi_{n}" for n in range(12)]
        cancellations_requested = 0

        for step in range(40):
            kind = rng.choice(["confirm", "success", "success", "failure", "cancel"])
            if kind == "confirm":
                outcome = plan.apply(BillingConfirmed("price_1", at(1)))
            elif kind == "success":
                outcome = plan.apply(
                    PaymentSucceeded("price_1", plan.installment_cents, rng.choice(refs), at(2))
                )
            elif kind == "failure":
                outcome = plan.apply(PaymentFailed("price_1", "card_declined", at(3)))
            else:
                if plan.is_terminal:
                    with pytest.raises(InvalidTransitionException):
                        plan.cancel(reason="random", actor="test")
                    continue
                outcome = plan.cancel(reason="random", actor="test")

            if outcome.requires_billing_cancellation:
                cancellations_requested += 1

            assert plan.check_invariants() == [], f"seed={seed} step={step}"
            assert plan.failed_payment_attempts <= FAILED_PAYMENT_THRESHOLD
            assert plan.payments_completed <= plan.number_of_payments

        # The external cancellation is owed at most once per plan
        assert cancellations_requested == (1 if plan.is_terminal else 0)
