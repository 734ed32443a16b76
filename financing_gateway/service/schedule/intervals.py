"""Due-date arithmetic per payment frequency."""

from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from financing_gateway.domain.entities import PaymentFrequency


def add_interval(from_date: date, frequency: PaymentFrequency) -> date:
    """
    Advance a date by one payment interval.

    Weekly and biweekly add 7 and 14 days. Monthly adds one calendar
    month, clamped to the end of shorter months (Jan 31 -> Feb 28).
    """
    if frequency == PaymentFrequency.WEEKLY:
        return from_date + timedelta(days=7)
    if frequency == PaymentFrequency.BIWEEKLY:
        return from_date + timedelta(days=14)
    if frequency == PaymentFrequency.MONTHLY:
        return from_date + relativedelta(months=1)
    raise ValueError(f"Unsupported payment frequency: {frequency}")


def due_dates(start_date: date, frequency: PaymentFrequency, count: int) -> list[date]:
    """
    Due dates for `count` installments.

    The first falls one interval after `start_date`, every following one
    falls one interval after its predecessor.
    """
    dates = []
    current = start_date
    for _ in range(count):
        current = add_interval(current, frequency)
        dates.append(current)
    return dates
