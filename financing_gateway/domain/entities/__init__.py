"""Domain Entities - Core business objects."""

from .template import FinancingTemplate, PaymentFrequency
from .profile import CustomerFinancingProfile
from .events import BillingConfirmed, BillingEvent, PaymentFailed, PaymentSucceeded
from .eligibility import EligibilityResult
from .plan import (
    FAILED_PAYMENT_THRESHOLD,
    InstallmentPlan,
    PaymentRecord,
    PaymentStatus,
    PlanStatus,
    TERMINAL_STATUSES,
    TransitionOutcome,
    TransitionResult,
    earliest_pending,
)
from .webhook import WebhookEventRecord, WebhookEventStatus

__all__ = [
    "FinancingTemplate",
    "PaymentFrequency",
    "CustomerFinancingProfile",
    "BillingConfirmed",
    "BillingEvent",
    "PaymentFailed",
    "PaymentSucceeded",
    "EligibilityResult",
    "FAILED_PAYMENT_THRESHOLD",
    "InstallmentPlan",
    "PaymentRecord",
    "PaymentStatus",
    "PlanStatus",
    "TERMINAL_STATUSES",
    "TransitionOutcome",
    "TransitionResult",
    "earliest_pending",
    "WebhookEventRecord",
    "WebhookEventStatus",
]
