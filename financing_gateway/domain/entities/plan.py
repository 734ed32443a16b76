"""Installment plan entity and its lifecycle state machine."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from financing_gateway.domain.exceptions import InvalidTransitionException

from .events import BillingConfirmed, BillingEvent, PaymentFailed, PaymentSucceeded
from .template import PaymentFrequency

# Consecutive failed charges that put a plan in default. Only a successful
# payment resets the count.
FAILED_PAYMENT_THRESHOLD = 3


class PlanStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DEFAULTED = "defaulted"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {PlanStatus.COMPLETED, PlanStatus.CANCELLED, PlanStatus.DEFAULTED}
)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class TransitionResult(str, Enum):
    """What applying an event or command did to a plan."""

    ACTIVATED = "activated"
    PAYMENT_RECORDED = "payment_recorded"
    FAILURE_RECORDED = "failure_recorded"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"
    CANCELLED = "cancelled"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


@dataclass(frozen=True)
class TransitionOutcome:
    plan_id: UUID
    result: TransitionResult
    from_status: PlanStatus
    to_status: PlanStatus
    requires_billing_cancellation: bool = False

    @property
    def changed(self) -> bool:
        return self.result not in (TransitionResult.DUPLICATE, TransitionResult.IGNORED)


@dataclass
class PaymentRecord:
    """A single scheduled installment within a plan."""

    payment_number: int
    due_date: date
    amount_cents: int
    status: PaymentStatus = PaymentStatus.PENDING
    paid_at: datetime | None = None
    external_payment_ref: str | None = None
    charged_cents: int | None = None
    failure_reason: str | None = None

    @property
    def amount_dollars(self) -> float:
        return self.amount_cents / 100

    def to_dict(self) -> dict:
        return {
            "payment_number": self.payment_number,
            "due_date": self.due_date.isoformat(),
            "amount_cents": self.amount_cents,
            "status": self.status.value,
            "paid_at": self.paid_at.isoformat() + "Z" if self.paid_at else None,
            "external_payment_ref": self.external_payment_ref,
        }


def earliest_pending(records: List[PaymentRecord]) -> Optional[PaymentRecord]:
    """
    The record a successful charge pays off: lowest payment_number still pending.

    Matching never depends on the order records are stored in.
    """
    pending = [r for r in records if r.status == PaymentStatus.PENDING]
    if not pending:
        return None
    return min(pending, key=lambda r: r.payment_number)


@dataclass
class InstallmentPlan:
    """
    A purchase split into scheduled installments.

    All state changes go through the transition methods below; they are the
    single authority over `status` and the counters. Terminal plans
    (completed, cancelled, defaulted) never change again.
    """

    customer_id: str
    template_id: str
    product_label: str
    frequency: PaymentFrequency
    number_of_payments: int
    total_cents: int
    down_payment_cents: int
    processing_fee_cents: int
    financed_cents: int
    installment_cents: int
    payment_schedule: List[PaymentRecord] = field(default_factory=list)
    purchase_context_id: Optional[str] = None
    status: PlanStatus = PlanStatus.PENDING
    payments_completed: int = 0
    total_paid_cents: int = 0
    failed_payment_attempts: int = 0
    last_failed_payment_at: datetime | None = None
    next_payment_date: date | None = None
    external_billing_ref: str | None = None
    billing_cancellation_pending: bool = False
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    activated_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    defaulted_at: datetime | None = None
    cancel_reason: str | None = None
    cancelled_by: str | None = None

    @classmethod
    def open(
        cls,
        customer_id: str,
        template_id: str,
        product_label: str,
        frequency: PaymentFrequency,
        total_cents: int,
        down_payment_cents: int,
        processing_fee_cents: int,
        financed_cents: int,
        installment_cents: int,
        payment_schedule: List[PaymentRecord],
        purchase_context_id: Optional[str] = None,
    ) -> "InstallmentPlan":
        """Create a PENDING plan with its schedule fully materialized."""
        plan = cls(
            customer_id=customer_id,
            template_id=template_id,
            product_label=product_label,
            frequency=frequency,
            number_of_payments=len(payment_schedule),
            total_cents=total_cents,
            down_payment_cents=down_payment_cents,
            processing_fee_cents=processing_fee_cents,
            financed_cents=financed_cents,
            installment_cents=installment_cents,
            payment_schedule=list(payment_schedule),
            purchase_context_id=purchase_context_id,
            total_paid_cents=down_payment_cents,
        )
        plan._refresh_next_payment_date()
        return plan

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def remaining_cents(self) -> int:
        return sum(
            r.amount_cents
            for r in self.payment_schedule
            if r.status != PaymentStatus.PAID
        )

    def next_pending_payment(self) -> Optional[PaymentRecord]:
        return earliest_pending(self.payment_schedule)

    def has_payment_ref(self, payment_ref: str) -> bool:
        return any(
            r.external_payment_ref == payment_ref
            for r in self.payment_schedule
            if r.status == PaymentStatus.PAID
        )

    def check_invariants(self) -> List[str]:
        """Return a list of violated invariants (empty when consistent)."""
        violations = []
        paid = [r for r in self.payment_schedule if r.status == PaymentStatus.PAID]

        if self.payments_completed != len(paid):
            violations.append("payments_completed does not match paid records")

        if self.total_paid_cents != self.down_payment_cents + sum(r.amount_cents for r in paid):
            violations.append("total_paid_cents does not match paid records")

        paid_numbers = [r.payment_number for r in paid]
        if len(paid_numbers) != len(set(paid_numbers)):
            violations.append("payment_number paid more than once")

        end_stamps = [
            stamp
            for stamp in (self.completed_at, self.cancelled_at, self.defaulted_at)
            if stamp is not None
        ]
        if len(end_stamps) > 1:
            violations.append("more than one terminal timestamp set")
        if self.is_terminal and len(end_stamps) != 1:
            violations.append("terminal plan without exactly one terminal timestamp")

        if sum(r.amount_cents for r in self.payment_schedule) != self.financed_cents:
            violations.append("schedule does not sum to financed amount")

        return violations

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def attach_billing(self, billing_ref: str) -> None:
        """Link the external recurring billing. Set once, never replaced."""
        if self.external_billing_ref is not None and self.external_billing_ref != billing_ref:
            raise InvalidTransitionException(
                plan_id=str(self.id),
                status=self.status.value,
                action="attach_billing",
                detail="external billing reference is already set",
            )
        if self.is_terminal:
            raise InvalidTransitionException(
                plan_id=str(self.id),
                status=self.status.value,
                action="attach_billing",
            )
        self.external_billing_ref = billing_ref

    def apply(self, event: BillingEvent) -> TransitionOutcome:
        """Apply a normalized billing event."""
        if isinstance(event, BillingConfirmed):
            return self.confirm_billing(event.occurred_at)
        if isinstance(event, PaymentSucceeded):
            return self.record_payment(event.payment_ref, event.amount_cents, event.occurred_at)
        if isinstance(event, PaymentFailed):
            return self.record_failure(event.reason_code, event.occurred_at)
        raise TypeError(f"Unsupported billing event: {type(event).__name__}")

    def confirm_billing(self, at: datetime | None = None) -> TransitionOutcome:
        if self.status != PlanStatus.PENDING:
            return self._noop()

        self.status = PlanStatus.ACTIVE
        self.activated_at = at or datetime.utcnow()
        return self._outcome(TransitionResult.ACTIVATED, PlanStatus.PENDING)

    def record_payment(
        self,
        payment_ref: str,
        amount_cents: int,
        at: datetime | None = None,
    ) -> TransitionOutcome:
        """
        Book a successful charge against the earliest pending installment.

        The processor decides that a payment happened; the plan only does the
        bookkeeping, so the charged amount is not matched against the record.
        """
        if self.is_terminal:
            return self._noop()

        from_status = self.status
        if self.has_payment_ref(payment_ref):
            return self._noop(duplicate=True)

        record = self.next_pending_payment()
        if record is None:
            return self._noop(duplicate=True)

        if self.status == PlanStatus.PENDING:
            # Charge delivered before the confirmation event
            self.confirm_billing(at)

        paid_at = at or datetime.utcnow()
        record.status = PaymentStatus.PAID
        record.paid_at = paid_at
        record.external_payment_ref = payment_ref
        record.charged_cents = amount_cents
        record.failure_reason = None

        self.payments_completed += 1
        self.total_paid_cents += record.amount_cents
        self.failed_payment_attempts = 0
        self._refresh_next_payment_date()

        if self.next_pending_payment() is None:
            self.status = PlanStatus.COMPLETED
            self.completed_at = paid_at
            self.next_payment_date = None
            return self._terminal_outcome(TransitionResult.COMPLETED, from_status)

        return self._outcome(TransitionResult.PAYMENT_RECORDED, from_status)

    def record_failure(self, reason_code: str, at: datetime | None = None) -> TransitionOutcome:
        if self.is_terminal:
            return self._noop()

        from_status = self.status
        if self.status == PlanStatus.PENDING:
            self.confirm_billing(at)

        failed_at = at or datetime.utcnow()
        self.failed_payment_attempts += 1
        self.last_failed_payment_at = failed_at

        record = self.next_pending_payment()
        if record is not None:
            record.failure_reason = reason_code

        if self.failed_payment_attempts >= FAILED_PAYMENT_THRESHOLD:
            if record is not None:
                record.status = PaymentStatus.FAILED
            self.status = PlanStatus.DEFAULTED
            self.defaulted_at = failed_at
            self.next_payment_date = None
            return self._terminal_outcome(TransitionResult.DEFAULTED, from_status)

        return self._outcome(TransitionResult.FAILURE_RECORDED, from_status)

    def cancel(self, reason: str, actor: str) -> TransitionOutcome:
        """Explicit cancellation. Refused once the plan is terminal."""
        if self.is_terminal:
            raise InvalidTransitionException(
                plan_id=str(self.id),
                status=self.status.value,
                action="cancel",
            )

        from_status = self.status
        self.status = PlanStatus.CANCELLED
        self.cancelled_at = datetime.utcnow()
        self.cancelled_by = actor
        self.cancel_reason = f"Cancelled by {actor}: {reason}"
        self.next_payment_date = None
        return self._terminal_outcome(TransitionResult.CANCELLED, from_status)

    def settle_billing_cancellation(self) -> None:
        """The owed external cancellation went through."""
        self.billing_cancellation_pending = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _refresh_next_payment_date(self) -> None:
        record = self.next_pending_payment()
        self.next_payment_date = record.due_date if record else None

    def _noop(self, duplicate: bool = False) -> TransitionOutcome:
        result = TransitionResult.DUPLICATE if duplicate else TransitionResult.IGNORED
        return TransitionOutcome(
            plan_id=self.id,
            result=result,
            from_status=self.status,
            to_status=self.status,
        )

    def _outcome(self, result: TransitionResult, from_status: PlanStatus) -> TransitionOutcome:
        return TransitionOutcome(
            plan_id=self.id,
            result=result,
            from_status=from_status,
            to_status=self.status,
        )

    def _terminal_outcome(
        self,
        result: TransitionResult,
        from_status: PlanStatus,
    ) -> TransitionOutcome:
        needs_cancellation = self.external_billing_ref is not None
        self.billing_cancellation_pending = needs_cancellation
        return TransitionOutcome(
            plan_id=self.id,
            result=result,
            from_status=from_status,
            to_status=self.status,
            requires_billing_cancellation=needs_cancellation,
        )
