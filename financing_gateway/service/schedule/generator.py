"""
Schedule Generator for installment plans.

Turns a financing template, a purchase amount and a start date into the
down payment, fee and ordered list of installments. Pure and deterministic:
identical input always yields an identical schedule.
"""

from dataclasses import dataclass
from datetime import date
from typing import List

from financing_gateway.domain.entities import FinancingTemplate, PaymentRecord

from .intervals import due_dates
from .money import percent_of, split_evenly


@dataclass(frozen=True)
class ScheduleQuote:
    """The money breakdown and installment list for one purchase."""

    total_cents: int
    down_payment_cents: int
    processing_fee_cents: int
    financed_cents: int
    installment_cents: int
    payments: List[PaymentRecord]

    @property
    def first_due_date(self) -> date:
        return self.payments[0].due_date

    @property
    def last_due_date(self) -> date:
        return self.payments[-1].due_date

    @property
    def total_with_fees_cents(self) -> int:
        return self.total_cents + self.processing_fee_cents


def generate_schedule(
    template: FinancingTemplate,
    total_cents: int,
    start_date: date,
) -> ScheduleQuote:
    """
    Generate the installment schedule for a purchase.

    Breakdown:
        down_payment = round(total * down_payment_percent / 100)
        processing_fee = round(total * processing_fee_percent / 100)
        financed = total - down_payment + processing_fee

    Installments are floor(financed / n) each, the last one takes the
    remainder. Due dates start one interval after `start_date`.

    Args:
        template: Financing template with count, frequency and percentages
        total_cents: Purchase amount in cents
        start_date: Plan creation date

    Returns:
        ScheduleQuote whose payments sum exactly to the financed amount

    Raises:
        ValueError: If the amount is not positive or too small to split

    Example:
        4 biweekly, 0% down/fee, 40000 on 2025-01-01 ->
        4 x 10000 due 2025-01-15, 01-29, 02-12, 02-26
    """
    if total_cents <= 0:
        raise ValueError("total_cents must be positive")

    if template.number_of_payments < 1:
        raise ValueError("number_of_payments must be at least 1")

    down_payment = percent_of(total_cents, template.down_payment_percent)
    processing_fee = percent_of(total_cents, template.processing_fee_percent)
    financed = total_cents - down_payment + processing_fee

    if financed < template.number_of_payments:
        raise ValueError(
            f"financed amount of {financed} cents cannot be split into "
            f"{template.number_of_payments} payments"
        )

    amounts = split_evenly(financed, template.number_of_payments)
    dates = due_dates(start_date, template.frequency, template.number_of_payments)

    payments = [
        PaymentRecord(payment_number=number, due_date=due, amount_cents=amount)
        for number, (due, amount) in enumerate(zip(dates, amounts), start=1)
    ]

    return ScheduleQuote(
        total_cents=total_cents,
        down_payment_cents=down_payment,
        processing_fee_cents=processing_fee,
        financed_cents=financed,
        installment_cents=amounts[0],
        payments=payments,
    )
