"""Financing template entity: one entry of the financing catalog."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PaymentFrequency(str, Enum):
    """How often an installment falls due."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


@dataclass
class FinancingTemplate:
    """
    A plan template offered to customers (e.g. "4 biweekly payments").

    Templates are versioned: every admin edit bumps `version`, plans keep
    the terms they were created with.
    """

    template_id: str
    name: str
    number_of_payments: int
    frequency: PaymentFrequency
    min_amount_cents: int
    max_amount_cents: int
    down_payment_percent: Decimal = Decimal("0")
    processing_fee_percent: Decimal = Decimal("0")
    description: str = ""
    is_active: bool = True
    sort_order: int = 1
    version: int = 1
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def covers(self, amount_cents: int) -> bool:
        """Check whether a purchase amount falls inside the template's band."""
        return self.min_amount_cents <= amount_cents <= self.max_amount_cents

    def validate(self) -> list[str]:
        errors = []

        if not self.template_id or not self.template_id.strip():
            errors.append("template_id is required")

        if self.number_of_payments < 1:
            errors.append("number_of_payments must be at least 1")

        if self.min_amount_cents < 0:
            errors.append("min_amount_cents cannot be negative")

        if self.min_amount_cents > self.max_amount_cents:
            errors.append("min_amount_cents must not exceed max_amount_cents")

        if not Decimal("0") <= self.down_payment_percent <= Decimal("100"):
            errors.append("down_payment_percent must be between 0 and 100")

        if self.processing_fee_percent < Decimal("0"):
            errors.append("processing_fee_percent cannot be negative")

        return errors
