"""Webhook acknowledgement schema."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookAckSchema(BaseModel):
    """Returned to the processor for every accepted delivery."""

    model_config = ConfigDict(from_attributes=True)

    event_id: str
    event_type: str
    outcome: str = Field(..., examples=["payment_recorded", "duplicate", "ignored"])
    plan_id: Optional[str] = None
    detail: Optional[str] = None
