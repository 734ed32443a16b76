"""Pydantic schemas for API request/response validation."""

from .analytics import AnalyticsResponseSchema
from .error import ErrorResponseSchema
from .plan import (
    CancelPlanRequestSchema,
    CheckoutSchema,
    CreatePlanRequestSchema,
    CreatePlanResponseSchema,
    PaymentSchema,
    PlanResponseSchema,
    ReconciliationResponseSchema,
)
from .profile import (
    ApproveProfileRequestSchema,
    ProfileResponseSchema,
    RevokeProfileRequestSchema,
    UpdateProfileRequestSchema,
)
from .template import (
    EligibilityResponseSchema,
    QuoteSchema,
    TemplateRequestSchema,
    TemplateResponseSchema,
)
from .webhook import WebhookAckSchema

__all__ = [
    "AnalyticsResponseSchema",
    "ErrorResponseSchema",
    "CancelPlanRequestSchema",
    "CheckoutSchema",
    "CreatePlanRequestSchema",
    "CreatePlanResponseSchema",
    "PaymentSchema",
    "PlanResponseSchema",
    "ReconciliationResponseSchema",
    "ApproveProfileRequestSchema",
    "ProfileResponseSchema",
    "RevokeProfileRequestSchema",
    "UpdateProfileRequestSchema",
    "EligibilityResponseSchema",
    "QuoteSchema",
    "TemplateRequestSchema",
    "TemplateResponseSchema",
    "WebhookAckSchema",
]
