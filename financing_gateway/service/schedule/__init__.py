"""
Schedule Generator for local installment financing
"""

from .generator import ScheduleQuote, generate_schedule
from .intervals import add_interval, due_dates
from .money import percent_of, split_evenly

__all__ = [
    "ScheduleQuote",
    "generate_schedule",
    "add_interval",
    "due_dates",
    "percent_of",
    "split_evenly",
]
