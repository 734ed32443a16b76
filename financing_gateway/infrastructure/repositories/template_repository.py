"""PostgreSQL implementation of TemplateRepository."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from financing_gateway.domain.entities import FinancingTemplate, PaymentFrequency
from financing_gateway.domain.interfaces import TemplateRepository
from financing_gateway.infrastructure.database.models import FinancingTemplateModel


class PostgresTemplateRepository(TemplateRepository):
    """PostgreSQL-backed financing catalog."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, template: FinancingTemplate) -> FinancingTemplate:
        model = FinancingTemplateModel(template_id=template.template_id)
        self._apply(model, template)
        model.created_at = template.created_at

        self._session.add(model)
        await self._session.flush()

        return template

    async def update(self, template: FinancingTemplate) -> FinancingTemplate:
        model = await self._session.get(FinancingTemplateModel, template.template_id)

        if model is None:
            raise ValueError(f"Template {template.template_id} not found")

        self._apply(model, template)
        await self._session.flush()

        return template

    async def get_by_id(self, template_id: str) -> Optional[FinancingTemplate]:
        model = await self._session.get(FinancingTemplateModel, template_id)

        if model is None:
            return None

        return self._to_entity(model)

    async def list(
        self,
        active: Optional[bool] = None,
        amount_cents: Optional[int] = None,
    ) -> List[FinancingTemplate]:
        stmt = select(FinancingTemplateModel)

        if active is not None:
            stmt = stmt.where(FinancingTemplateModel.is_active == active)

        if amount_cents is not None:
            stmt = stmt.where(
                FinancingTemplateModel.min_amount_cents <= amount_cents,
                FinancingTemplateModel.max_amount_cents >= amount_cents,
            )

        stmt = stmt.order_by(
            FinancingTemplateModel.sort_order.asc(),
            FinancingTemplateModel.template_id.asc(),
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    def _apply(self, model: FinancingTemplateModel, template: FinancingTemplate) -> None:
        model.name = template.name
        model.description = template.description
        model.number_of_payments = template.number_of_payments
        model.frequency = template.frequency.value
        model.min_amount_cents = template.min_amount_cents
        model.max_amount_cents = template.max_amount_cents
        model.down_payment_percent = template.down_payment_percent
        model.processing_fee_percent = template.processing_fee_percent
        model.is_active = template.is_active
        model.sort_order = template.sort_order
        model.version = template.version
        model.updated_at = template.updated_at

    def _to_entity(self, model: FinancingTemplateModel) -> FinancingTemplate:
        return FinancingTemplate(
            template_id=model.template_id,
            name=model.name,
            description=model.description,
            number_of_payments=model.number_of_payments,
            frequency=PaymentFrequency(model.frequency),
            min_amount_cents=model.min_amount_cents,
            max_amount_cents=model.max_amount_cents,
            down_payment_percent=model.down_payment_percent,
            processing_fee_percent=model.processing_fee_percent,
            is_active=model.is_active,
            sort_order=model.sort_order,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
