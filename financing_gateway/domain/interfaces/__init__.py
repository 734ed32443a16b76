"""
Domain Interfaces (Ports)
"""

from .repositories import (
    PlanRepository,
    PlanTotals,
    ProfileRepository,
    TemplateRepository,
    WebhookEventRepository,
)
from .clients import BillingGateway, RecurringBilling

__all__ = [
    "PlanRepository",
    "PlanTotals",
    "ProfileRepository",
    "TemplateRepository",
    "WebhookEventRepository",
    "BillingGateway",
    "RecurringBilling",
]
