"""Admin analytics Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsResponseSchema(BaseModel):
    """Schema for GET /v1/admin/financing/analytics response."""

    model_config = ConfigDict(from_attributes=True)

    total_plans: int
    plans_by_status: dict[str, int]
    total_financed_cents: int
    total_collected_cents: int
    default_rate_percent: float = Field(..., examples=[4.35])
    approved_customers: int
    cancellations_pending: int
