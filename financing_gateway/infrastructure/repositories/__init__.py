"""Repository implementations."""

from .plan_repository import PostgresPlanRepository
from .profile_repository import PostgresProfileRepository
from .template_repository import PostgresTemplateRepository
from .webhook_event_repository import PostgresWebhookEventRepository

__all__ = [
    "PostgresPlanRepository",
    "PostgresProfileRepository",
    "PostgresTemplateRepository",
    "PostgresWebhookEventRepository",
]
