"""Financing template Pydantic schemas."""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Frequency = Literal["weekly", "biweekly", "monthly"]


class TemplateRequestSchema(BaseModel):
    """Schema for creating or replacing a financing template."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "template_id": "4-biweekly",
                    "name": "4 biweekly payments",
                    "number_of_payments": 4,
                    "frequency": "biweekly",
                    "min_amount_cents": 5000,
                    "max_amount_cents": 200000,
                    "down_payment_percent": "0",
                    "processing_fee_percent": "0",
                }
            ]
        }
    )

    template_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)
    number_of_payments: int = Field(..., ge=1, le=120)
    frequency: Frequency
    min_amount_cents: int = Field(..., ge=0)
    max_amount_cents: int = Field(..., ge=0)
    down_payment_percent: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    processing_fee_percent: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    is_active: bool = True
    sort_order: int = Field(1, ge=0)

    @model_validator(mode="after")
    def check_band(self) -> "TemplateRequestSchema":
        if self.min_amount_cents > self.max_amount_cents:
            raise ValueError("min_amount_cents must not exceed max_amount_cents")
        return self


class QuoteSchema(BaseModel):
    """Cost breakdown of a template for one purchase amount."""

    model_config = ConfigDict(from_attributes=True)

    total_cents: int
    down_payment_cents: int
    processing_fee_cents: int
    financed_cents: int
    installment_cents: int
    first_due_date: str = Field(..., examples=["2025-01-15"])
    last_due_date: str = Field(..., examples=["2025-02-26"])


class TemplateResponseSchema(BaseModel):
    """Schema for a financing template."""

    model_config = ConfigDict(from_attributes=True)

    template_id: str
    name: str
    description: str
    number_of_payments: int
    frequency: str
    min_amount_cents: int
    max_amount_cents: int
    down_payment_percent: str = Field(..., examples=["10.00"])
    processing_fee_percent: str = Field(..., examples=["2.50"])
    is_active: bool
    sort_order: int
    version: int
    quote: Optional[QuoteSchema] = Field(
        None,
        description="Present when the request named a purchase amount",
    )


class EligibilityResponseSchema(BaseModel):
    """Schema for GET /v1/financing/eligibility response."""

    model_config = ConfigDict(from_attributes=True)

    customer_id: str
    amount_cents: int
    eligible: bool
    reason: Optional[str] = Field(
        None,
        description="Why financing is not offered (null when eligible)",
        examples=["No financing plans available for this amount"],
    )
    templates: list[TemplateResponseSchema] = Field(
        ...,
        description="Templates the customer may choose from, in display order",
    )
