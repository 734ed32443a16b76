"""Customer financing profile Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ApproveProfileRequestSchema(BaseModel):
    """Schema for approving a customer for financing."""

    actor: str = Field(..., min_length=1, max_length=255)
    max_approved_cents: Optional[int] = Field(
        None,
        gt=0,
        description="Ceiling on any single financed purchase",
    )
    notes: str = Field("", max_length=2000)
    billing_customer_ref: Optional[str] = Field(
        None,
        max_length=255,
        description="Processor customer id, e.g. cus_...",
    )
    email: Optional[str] = Field(None, max_length=255)


class RevokeProfileRequestSchema(BaseModel):
    """Schema for revoking a customer's approval."""

    actor: str = Field(..., min_length=1, max_length=255)
    reason: str = Field("", max_length=1000)


class UpdateProfileRequestSchema(BaseModel):
    """Schema for editing an approved customer's details. Omitted fields stay as they are."""

    actor: str = Field(..., min_length=1, max_length=255)
    max_approved_cents: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = Field(None, max_length=2000)
    billing_customer_ref: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)


class ProfileResponseSchema(BaseModel):
    """Schema for a customer financing profile."""

    model_config = ConfigDict(from_attributes=True)

    customer_id: str
    approved: bool
    max_approved_cents: Optional[int]
    notes: str
    billing_customer_ref: Optional[str]
    email: Optional[str]
    approved_by: Optional[str]
    approved_at: Optional[str]
    revoked_by: Optional[str]
    revoked_at: Optional[str]
