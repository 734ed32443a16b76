"""Profile service - admin approval of customers for financing."""

from datetime import datetime
from typing import List, Optional

import structlog

from financing_gateway.core.locks import KeyedLockRegistry, plan_locks
from financing_gateway.domain.entities import CustomerFinancingProfile, PlanStatus
from financing_gateway.domain.exceptions import (
    InvalidPlanRequestException,
    ProfileNotApprovedException,
    ProfileNotFoundException,
    ProfileRevocationBlockedException,
)
from financing_gateway.domain.interfaces import PlanRepository, ProfileRepository
from financing_gateway.application.dto import ApproveProfileRequest, ProfileResponse

logger = structlog.get_logger(__name__)

OPEN_STATUSES = [PlanStatus.PENDING, PlanStatus.ACTIVE]


def customer_lock_key(customer_id: str) -> str:
    """Lock key shared by plan creation and profile changes of a customer."""
    return f"customer:{customer_id}"


class ProfileService:
    """
    Application service for customer financing profiles.

    Changes run under the customer's lock so they cannot interleave with
    a plan being created for the same customer.
    """

    def __init__(
        self,
        profile_repository: ProfileRepository,
        plan_repository: PlanRepository,
        locks: KeyedLockRegistry = plan_locks,
    ):
        self._profile_repo = profile_repository
        self._plan_repo = plan_repository
        self._locks = locks

    async def get_profile(self, customer_id: str) -> ProfileResponse:
        profile = await self._profile_repo.get(customer_id)
        if profile is None:
            raise ProfileNotFoundException(customer_id)
        return ProfileResponse.from_entity(profile)

    async def list_profiles(
        self,
        approved: Optional[bool] = None,
        limit: int = 100,
    ) -> List[ProfileResponse]:
        profiles = await self._profile_repo.list(approved=approved, limit=limit)
        return [ProfileResponse.from_entity(p) for p in profiles]

    async def approve(self, customer_id: str, request: ApproveProfileRequest) -> ProfileResponse:
        """
        Approve a customer for local financing, creating the profile if needed.

        Raises:
            InvalidPlanRequestException: If the request is invalid
        """
        errors = request.validate()
        if errors:
            raise InvalidPlanRequestException("; ".join(errors))

        async with self._locks.acquire(customer_lock_key(customer_id)):
            profile = await self._profile_repo.get(customer_id)
            if profile is None:
                profile = CustomerFinancingProfile(customer_id=customer_id)

            profile.approve(
                approved_by=request.actor,
                max_approved_cents=request.max_approved_cents,
                notes=request.notes,
            )
            if request.billing_customer_ref is not None:
                profile.billing_customer_ref = request.billing_customer_ref
            if request.email is not None:
                profile.email = request.email

            await self._profile_repo.upsert(profile)
            await self._profile_repo.commit()

        logger.info(
            "financing_approved",
            customer_id=customer_id,
            approved_by=request.actor,
            max_approved_cents=request.max_approved_cents,
        )

        return ProfileResponse.from_entity(profile)

    async def revoke(self, customer_id: str, actor: str, reason: str) -> ProfileResponse:
        """
        Revoke a customer's financing approval.

        Raises:
            ProfileNotFoundException: If the customer has no profile
            ProfileRevocationBlockedException: If a plan is still open
        """
        async with self._locks.acquire(customer_lock_key(customer_id)):
            profile = await self._profile_repo.get(customer_id)
            if profile is None:
                raise ProfileNotFoundException(customer_id)

            open_plans = await self._plan_repo.count_for_customer(customer_id, OPEN_STATUSES)
            if open_plans > 0:
                logger.warning(
                    "financing_revocation_blocked",
                    customer_id=customer_id,
                    open_plans=open_plans,
                )
                raise ProfileRevocationBlockedException(customer_id, open_plans)

            profile.revoke(revoked_by=actor, reason=reason)
            await self._profile_repo.upsert(profile)
            await self._profile_repo.commit()

        logger.info("financing_revoked", customer_id=customer_id, revoked_by=actor)

        return ProfileResponse.from_entity(profile)

    async def update_details(
        self,
        customer_id: str,
        actor: str,
        max_approved_cents: Optional[int] = None,
        notes: Optional[str] = None,
        billing_customer_ref: Optional[str] = None,
        email: Optional[str] = None,
    ) -> ProfileResponse:
        """
        Edit an approved customer's financing details.

        Only the fields given are changed.

        Raises:
            ProfileNotFoundException: If the customer has no profile
            ProfileNotApprovedException: If the customer is not approved
        """
        if max_approved_cents is not None and max_approved_cents <= 0:
            raise InvalidPlanRequestException("max_approved_cents must be positive")

        async with self._locks.acquire(customer_lock_key(customer_id)):
            profile = await self._profile_repo.get(customer_id)
            if profile is None:
                raise ProfileNotFoundException(customer_id)
            if not profile.approved:
                raise ProfileNotApprovedException(customer_id)

            if max_approved_cents is not None:
                profile.max_approved_cents = max_approved_cents
            if notes is not None:
                profile.notes = notes
            if billing_customer_ref is not None:
                profile.billing_customer_ref = billing_customer_ref
            if email is not None:
                profile.email = email
            profile.updated_at = datetime.utcnow()

            await self._profile_repo.upsert(profile)
            await self._profile_repo.commit()

        logger.info("financing_details_updated", customer_id=customer_id, updated_by=actor)

        return ProfileResponse.from_entity(profile)
