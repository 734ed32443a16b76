"""Data Transfer Objects for application layer."""

from .analytics import AnalyticsResponse
from .eligibility import EligibilityResponse
from .plan import (
    CancelPlanRequest,
    CheckoutDTO,
    CreatePlanRequest,
    CreatePlanResponse,
    PaymentDTO,
    PlanResponse,
    ReconciliationResponse,
)
from .profile import ApproveProfileRequest, ProfileResponse
from .template import QuoteDTO, TemplateRequest, TemplateResponse
from .webhook import WebhookAck

__all__ = [
    "AnalyticsResponse",
    "EligibilityResponse",
    "CancelPlanRequest",
    "CheckoutDTO",
    "CreatePlanRequest",
    "CreatePlanResponse",
    "PaymentDTO",
    "PlanResponse",
    "ReconciliationResponse",
    "ApproveProfileRequest",
    "ProfileResponse",
    "QuoteDTO",
    "TemplateRequest",
    "TemplateResponse",
    "WebhookAck",
]
