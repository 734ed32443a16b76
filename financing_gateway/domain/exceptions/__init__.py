"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .plan import (
    InvalidPlanRequestException,
    InvalidTransitionException,
    PlanNotFoundException,
)
from .eligibility import IneligibleException
from .catalog import (
    DuplicateTemplateException,
    InvalidTemplateException,
    ProfileNotApprovedException,
    ProfileNotFoundException,
    ProfileRevocationBlockedException,
    TemplateNotFoundException,
)
from .billing import (
    BillingGatewayException,
    GatewayUnavailableException,
    InvalidCustomerException,
    InvalidWebhookSignatureException,
    UnknownWebhookReferenceException,
)

__all__ = [
    "DomainException",
    "InvalidPlanRequestException",
    "InvalidTransitionException",
    "PlanNotFoundException",
    "IneligibleException",
    "DuplicateTemplateException",
    "InvalidTemplateException",
    "ProfileNotApprovedException",
    "ProfileNotFoundException",
    "ProfileRevocationBlockedException",
    "TemplateNotFoundException",
    "BillingGatewayException",
    "GatewayUnavailableException",
    "InvalidCustomerException",
    "InvalidWebhookSignatureException",
    "UnknownWebhookReferenceException",
]
