"""Normalized billing events consumed by the plan lifecycle.

The billing gateway adapter translates processor-specific webhook payloads
into these three shapes. Everything downstream is processor-agnostic.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class BillingConfirmed:
    """The processor confirmed the recurring billing mechanism exists."""

    billing_ref: str
    occurred_at: datetime
    event_id: str = ""


@dataclass(frozen=True)
class PaymentSucceeded:
    """One recurring charge went through."""

    billing_ref: str
    amount_cents: int
    payment_ref: str
    occurred_at: datetime
    event_id: str = ""


@dataclass(frozen=True)
class PaymentFailed:
    """One recurring charge was declined or errored."""

    billing_ref: str
    reason_code: str
    occurred_at: datetime
    event_id: str = ""


BillingEvent = Union[BillingConfirmed, PaymentSucceeded, PaymentFailed]
