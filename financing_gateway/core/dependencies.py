"""Dependency injection for FastAPI."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from financing_gateway.core.locks import KeyedLockRegistry, plan_locks
from financing_gateway.domain.interfaces import BillingGateway
from financing_gateway.infrastructure.database import get_db_session
from financing_gateway.infrastructure.repositories import (
    PostgresPlanRepository,
    PostgresProfileRepository,
    PostgresTemplateRepository,
    PostgresWebhookEventRepository,
)
from financing_gateway.infrastructure.clients import StripeBillingGateway, normalize_event
from financing_gateway.application.services import (
    AnalyticsService,
    EligibilityService,
    PlanService,
    ProfileService,
    TemplateService,
    WebhookService,
)


# Repository dependencies
async def get_template_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresTemplateRepository:
    """Get a TemplateRepository instance."""
    return PostgresTemplateRepository(session)


async def get_profile_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresProfileRepository:
    """Get a ProfileRepository instance."""
    return PostgresProfileRepository(session)


async def get_plan_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresPlanRepository:
    """Get a PlanRepository instance."""
    return PostgresPlanRepository(session)


async def get_webhook_event_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresWebhookEventRepository:
    """Get a WebhookEventRepository instance."""
    return PostgresWebhookEventRepository(session)


# Process-wide dependencies
def get_plan_locks() -> KeyedLockRegistry:
    """Get the process-wide plan and customer lock registry."""
    return plan_locks


@lru_cache
def get_billing_gateway() -> BillingGateway:
    """Get the BillingGateway instance."""
    return StripeBillingGateway()


# Service dependencies
async def get_template_service(
    template_repo: Annotated[PostgresTemplateRepository, Depends(get_template_repository)],
) -> TemplateService:
    """Get a TemplateService instance."""
    return TemplateService(template_repository=template_repo)


async def get_eligibility_service(
    profile_repo: Annotated[PostgresProfileRepository, Depends(get_profile_repository)],
    template_repo: Annotated[PostgresTemplateRepository, Depends(get_template_repository)],
    plan_repo: Annotated[PostgresPlanRepository, Depends(get_plan_repository)],
) -> EligibilityService:
    """Get an EligibilityService instance."""
    return EligibilityService(
        profile_repository=profile_repo,
        template_repository=template_repo,
        plan_repository=plan_repo,
    )


async def get_profile_service(
    profile_repo: Annotated[PostgresProfileRepository, Depends(get_profile_repository)],
    plan_repo: Annotated[PostgresPlanRepository, Depends(get_plan_repository)],
    locks: Annotated[KeyedLockRegistry, Depends(get_plan_locks)],
) -> ProfileService:
    """Get a ProfileService instance."""
    return ProfileService(
        profile_repository=profile_repo,
        plan_repository=plan_repo,
        locks=locks,
    )


async def get_plan_service(
    plan_repo: Annotated[PostgresPlanRepository, Depends(get_plan_repository)],
    profile_repo: Annotated[PostgresProfileRepository, Depends(get_profile_repository)],
    eligibility_service: Annotated[EligibilityService, Depends(get_eligibility_service)],
    billing_gateway: Annotated[BillingGateway, Depends(get_billing_gateway)],
    locks: Annotated[KeyedLockRegistry, Depends(get_plan_locks)],
) -> PlanService:
    """Get a PlanService instance with all dependencies."""
    return PlanService(
        plan_repository=plan_repo,
        profile_repository=profile_repo,
        eligibility_service=eligibility_service,
        billing_gateway=billing_gateway,
        locks=locks,
    )


async def get_webhook_service(
    webhook_repo: Annotated[
        PostgresWebhookEventRepository, Depends(get_webhook_event_repository)
    ],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
    billing_gateway: Annotated[BillingGateway, Depends(get_billing_gateway)],
    locks: Annotated[KeyedLockRegistry, Depends(get_plan_locks)],
) -> WebhookService:
    """Get a WebhookService instance."""
    return WebhookService(
        webhook_repository=webhook_repo,
        plan_service=plan_service,
        billing_gateway=billing_gateway,
        normalizer=normalize_event,
        locks=locks,
    )


async def get_analytics_service(
    plan_repo: Annotated[PostgresPlanRepository, Depends(get_plan_repository)],
    profile_repo: Annotated[PostgresProfileRepository, Depends(get_profile_repository)],
) -> AnalyticsService:
    """Get an AnalyticsService instance."""
    return AnalyticsService(plan_repository=plan_repo, profile_repository=profile_repo)
