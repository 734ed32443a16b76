"""Analytics service - admin read model over plans and profiles."""

import structlog

from financing_gateway.core.metrics import set_cancellations_pending
from financing_gateway.domain.entities import PlanStatus
from financing_gateway.domain.interfaces import PlanRepository, ProfileRepository
from financing_gateway.application.dto import AnalyticsResponse

logger = structlog.get_logger(__name__)


class AnalyticsService:
    """Aggregate figures for the financing admin dashboard."""

    def __init__(
        self,
        plan_repository: PlanRepository,
        profile_repository: ProfileRepository,
    ):
        self._plan_repo = plan_repository
        self._profile_repo = profile_repository

    async def get_analytics(self) -> AnalyticsResponse:
        totals = await self._plan_repo.totals()
        approved = await self._profile_repo.count_approved()
        pending = await self._plan_repo.get_pending_cancellations()
        set_cancellations_pending(len(pending))

        counts = {status.value: totals.counts_by_status.get(status.value, 0) for status in PlanStatus}
        defaulted = counts[PlanStatus.DEFAULTED.value]
        default_rate = (
            round(defaulted / totals.total_plans * 100, 2) if totals.total_plans else 0.0
        )

        return AnalyticsResponse(
            total_plans=totals.total_plans,
            plans_by_status=counts,
            total_financed_cents=totals.total_financed_cents,
            total_collected_cents=totals.total_collected_cents,
            default_rate_percent=default_rate,
            approved_customers=approved,
            cancellations_pending=len(pending),
        )
