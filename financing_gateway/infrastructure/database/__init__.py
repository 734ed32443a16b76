"""Database infrastructure."""

from .connection import get_db_session, DatabaseSessionManager, db_manager
from .models import (
    Base,
    FinancingProfileModel,
    FinancingTemplateModel,
    InstallmentPlanModel,
    PaymentRecordModel,
    WebhookEventModel,
)

__all__ = [
    "get_db_session",
    "DatabaseSessionManager",
    "db_manager",
    "Base",
    "FinancingProfileModel",
    "FinancingTemplateModel",
    "InstallmentPlanModel",
    "PaymentRecordModel",
    "WebhookEventModel",
]
