"""Installment plan Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreatePlanRequestSchema(BaseModel):
    """Schema for POST /v1/financing/plans request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "customer_id": "cust_123",
                    "template_id": "4-biweekly",
                    "total_cents": 40000,
                    "product_label": "Spring Workshop Registration",
                    "purchase_context_id": "registration_42",
                }
            ]
        }
    )

    customer_id: str = Field(..., min_length=1, max_length=255)
    template_id: str = Field(..., min_length=1, max_length=100)
    total_cents: int = Field(..., gt=0, description="Purchase amount in cents")
    product_label: str = Field(..., min_length=1, max_length=255)
    purchase_context_id: Optional[str] = Field(
        None,
        max_length=255,
        description="The purchase being financed (registration, enrollment)",
    )

    @field_validator("customer_id", "template_id", "product_label")
    @classmethod
    def strip_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("value cannot be empty or whitespace")
        return v.strip()


class CancelPlanRequestSchema(BaseModel):
    """Schema for a plan cancellation."""

    reason: str = Field("", max_length=1000)
    actor: str = Field(..., min_length=1, max_length=255, description="Who is cancelling")


class PaymentSchema(BaseModel):
    """Schema for one installment of a plan."""

    model_config = ConfigDict(from_attributes=True)

    payment_number: int = Field(..., ge=1)
    due_date: str = Field(..., examples=["2025-01-15"])
    amount_cents: int = Field(..., gt=0, examples=[10000])
    status: str = Field(..., examples=["pending"])
    paid_at: Optional[str] = None
    external_payment_ref: Optional[str] = None
    failure_reason: Optional[str] = None


class PlanResponseSchema(BaseModel):
    """Schema for an installment plan with its schedule."""

    model_config = ConfigDict(from_attributes=True)

    plan_id: str
    customer_id: str
    purchase_context_id: Optional[str]
    product_label: str
    template_id: str
    frequency: str
    status: str = Field(..., examples=["active"])
    number_of_payments: int
    total_cents: int
    down_payment_cents: int
    processing_fee_cents: int
    financed_cents: int
    installment_cents: int
    payments_completed: int
    total_paid_cents: int
    remaining_cents: int
    failed_payment_attempts: int
    next_payment_date: Optional[str]
    external_billing_ref: Optional[str]
    billing_cancellation_pending: bool
    created_at: str
    activated_at: Optional[str]
    completed_at: Optional[str]
    cancelled_at: Optional[str]
    defaulted_at: Optional[str]
    cancel_reason: Optional[str]
    payments: list[PaymentSchema]


class CheckoutSchema(BaseModel):
    """Where the customer completes the recurring billing setup."""

    model_config = ConfigDict(from_attributes=True)

    billing_ref: str
    checkout_url: Optional[str]
    checkout_session_id: Optional[str]


class CreatePlanResponseSchema(BaseModel):
    """Schema for POST /v1/financing/plans response body."""

    model_config = ConfigDict(from_attributes=True)

    plan: PlanResponseSchema
    checkout: CheckoutSchema


class ReconciliationResponseSchema(BaseModel):
    """Schema for the external cancellation sweep."""

    model_config = ConfigDict(from_attributes=True)

    attempted: int
    settled: int
    still_pending: int
