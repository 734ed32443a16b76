"""Application services (use cases)."""

from .analytics_service import AnalyticsService
from .eligibility_service import EligibilityService
from .plan_service import PlanService
from .profile_service import ProfileService
from .template_service import TemplateService
from .webhook_service import WebhookService

__all__ = [
    "AnalyticsService",
    "EligibilityService",
    "PlanService",
    "ProfileService",
    "TemplateService",
    "WebhookService",
]
