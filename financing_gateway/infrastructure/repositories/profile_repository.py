"""PostgreSQL implementation of ProfileRepository."""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from financing_gateway.domain.entities import CustomerFinancingProfile
from financing_gateway.domain.interfaces import ProfileRepository
from financing_gateway.infrastructure.database.models import FinancingProfileModel


class PostgresProfileRepository(ProfileRepository):
    """PostgreSQL-backed customer financing profiles."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, customer_id: str) -> Optional[CustomerFinancingProfile]:
        model = await self._session.get(FinancingProfileModel, customer_id)

        if model is None:
            return None

        return self._to_entity(model)

    async def upsert(self, profile: CustomerFinancingProfile) -> CustomerFinancingProfile:
        model = await self._session.get(FinancingProfileModel, profile.customer_id)

        if model is None:
            model = FinancingProfileModel(customer_id=profile.customer_id)
            self._session.add(model)

        model.approved = profile.approved
        model.max_approved_cents = profile.max_approved_cents
        model.notes = profile.notes
        model.billing_customer_ref = profile.billing_customer_ref
        model.email = profile.email
        model.approved_by = profile.approved_by
        model.approved_at = profile.approved_at
        model.revoked_by = profile.revoked_by
        model.revoked_at = profile.revoked_at
        model.updated_at = profile.updated_at

        await self._session.flush()

        return profile

    async def list(
        self,
        approved: Optional[bool] = None,
        limit: int = 100,
    ) -> List[CustomerFinancingProfile]:
        stmt = select(FinancingProfileModel)

        if approved is not None:
            stmt = stmt.where(FinancingProfileModel.approved == approved)

        stmt = stmt.order_by(FinancingProfileModel.updated_at.desc()).limit(limit)
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def count_approved(self) -> int:
        stmt = select(func.count()).select_from(FinancingProfileModel).where(
            FinancingProfileModel.approved.is_(True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def commit(self) -> None:
        await self._session.commit()

    def _to_entity(self, model: FinancingProfileModel) -> CustomerFinancingProfile:
        return CustomerFinancingProfile(
            customer_id=model.customer_id,
            approved=model.approved,
            max_approved_cents=model.max_approved_cents,
            notes=model.notes,
            billing_customer_ref=model.billing_customer_ref,
            email=model.email,
            approved_by=model.approved_by,
            approved_at=model.approved_at,
            revoked_by=model.revoked_by,
            revoked_at=model.revoked_at,
            updated_at=model.updated_at,
        )
