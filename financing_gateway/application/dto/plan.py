"""Data transfer objects for installment plan operations."""

from dataclasses import dataclass
from typing import List, Optional

from financing_gateway.domain.entities import InstallmentPlan


@dataclass(frozen=True)
class CreatePlanRequest:
    """Input data for creating an installment plan."""

    customer_id: str
    template_id: str
    total_cents: int
    product_label: str
    purchase_context_id: Optional[str] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.customer_id or not self.customer_id.strip():
            errors.append("customer_id is required")

        if not self.template_id or not self.template_id.strip():
            errors.append("template_id is required")

        if self.total_cents <= 0:
            errors.append("total_cents must be positive")

        if not self.product_label or not self.product_label.strip():
            errors.append("product_label is required")

        return errors


@dataclass(frozen=True)
class CancelPlanRequest:
    """Input data for cancelling a plan."""

    reason: str
    actor: str

    def validate(self) -> List[str]:
        errors = []

        if not self.actor or not self.actor.strip():
            errors.append("actor is required")

        return errors


@dataclass(frozen=True)
class PaymentDTO:
    """Single installment within a plan response."""

    payment_number: int
    due_date: str
    amount_cents: int
    status: str
    paid_at: Optional[str]
    external_payment_ref: Optional[str]
    failure_reason: Optional[str]


@dataclass(frozen=True)
class PlanResponse:
    """Response data for an installment plan with its schedule."""

    plan_id: str
    customer_id: str
    purchase_context_id: Optional[str]
    product_label: str
    template_id: str
    frequency: str
    status: str
    number_of_payments: int
    total_cents: int
    down_payment_cents: int
    processing_fee_cents: int
    financed_cents: int
    installment_cents: int
    payments_completed: int
    total_paid_cents: int
    remaining_cents: int
    failed_payment_attempts: int
    next_payment_date: Optional[str]
    external_billing_ref: Optional[str]
    billing_cancellation_pending: bool
    created_at: str
    activated_at: Optional[str]
    completed_at: Optional[str]
    cancelled_at: Optional[str]
    defaulted_at: Optional[str]
    cancel_reason: Optional[str]
    payments: List[PaymentDTO]

    @classmethod
    def from_entity(cls, plan: InstallmentPlan) -> "PlanResponse":
        payments = [
            PaymentDTO(
                payment_number=record.payment_number,
                due_date=record.due_date.isoformat(),
                amount_cents=record.amount_cents,
                status=record.status.value,
                paid_at=_iso(record.paid_at),
                external_payment_ref=record.external_payment_ref,
                failure_reason=record.failure_reason,
            )
            for record in sorted(plan.payment_schedule, key=lambda r: r.payment_number)
        ]

        return cls(
            plan_id=str(plan.id),
            customer_id=plan.customer_id,
            purchase_context_id=plan.purchase_context_id,
            product_label=plan.product_label,
            template_id=plan.template_id,
            frequency=plan.frequency.value,
            status=plan.status.value,
            number_of_payments=plan.number_of_payments,
            total_cents=plan.total_cents,
            down_payment_cents=plan.down_payment_cents,
            processing_fee_cents=plan.processing_fee_cents,
            financed_cents=plan.financed_cents,
            installment_cents=plan.installment_cents,
            payments_completed=plan.payments_completed,
            total_paid_cents=plan.total_paid_cents,
            remaining_cents=plan.remaining_cents,
            failed_payment_attempts=plan.failed_payment_attempts,
            next_payment_date=plan.next_payment_date.isoformat() if plan.next_payment_date else None,
            external_billing_ref=plan.external_billing_ref,
            billing_cancellation_pending=plan.billing_cancellation_pending,
            created_at=_iso(plan.created_at),
            activated_at=_iso(plan.activated_at),
            completed_at=_iso(plan.completed_at),
            cancelled_at=_iso(plan.cancelled_at),
            defaulted_at=_iso(plan.defaulted_at),
            cancel_reason=plan.cancel_reason,
            payments=payments,
        )


@dataclass(frozen=True)
class CheckoutDTO:
    """Where the customer completes the recurring billing setup."""

    billing_ref: str
    checkout_url: Optional[str]
    checkout_session_id: Optional[str]


@dataclass(frozen=True)
class CreatePlanResponse:
    """A newly created plan and its checkout handle."""

    plan: PlanResponse
    checkout: CheckoutDTO


@dataclass(frozen=True)
class ReconciliationResponse:
    """Result of a sweep over owed external cancellations."""

    attempted: int
    settled: int
    still_pending: int


def _iso(value) -> Optional[str]:
    return value.isoformat() + "Z" if value else None
