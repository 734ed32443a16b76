"""Data transfer objects for the admin analytics read model."""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class AnalyticsResponse:
    """Aggregate financing figures."""

    total_plans: int
    plans_by_status: Dict[str, int]
    total_financed_cents: int
    total_collected_cents: int
    default_rate_percent: float
    approved_customers: int
    cancellations_pending: int
