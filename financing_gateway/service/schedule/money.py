"""
Currency arithmetic for installment schedules.

All amounts are integer cents. Percentages arrive as Decimal and are
applied with half-up rounding to the nearest cent.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List


def percent_of(amount_cents: int, percent: Decimal) -> int:
    """
    Apply a percentage to an amount, rounded half-up to the cent.

    Args:
        amount_cents: Base amount in cents
        percent: Percentage (e.g. Decimal("12.5") for 12.5%)

    Returns:
        The percentage of the amount in cents
    """
    value = Decimal(amount_cents) * Decimal(percent) / Decimal(100)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def split_evenly(total_cents: int, parts: int) -> List[int]:
    """
    Split an amount into `parts` installments.

    Every installment gets floor(total / parts); the last one absorbs the
    remainder so the parts always sum to exactly `total_cents`.

    Example:
        10003 over 3 -> [3334, 3334, 3335]
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")

    base = total_cents // parts
    amounts = [base] * (parts - 1)
    amounts.append(total_cents - base * (parts - 1))
    return amounts
