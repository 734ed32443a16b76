"""PostgreSQL repository implementation for installment plans."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from financing_gateway.domain.entities import (
    InstallmentPlan,
    PaymentFrequency,
    PaymentRecord,
    PaymentStatus,
    PlanStatus,
    TERMINAL_STATUSES,
)
from financing_gateway.domain.interfaces import PlanRepository, PlanTotals
from financing_gateway.infrastructure.database.models import (
    InstallmentPlanModel,
    PaymentRecordModel,
)


class PostgresPlanRepository(PlanRepository):
    """PostgreSQL-backed plan repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, plan: InstallmentPlan) -> InstallmentPlan:
        model = InstallmentPlanModel(id=str(plan.id), created_at=plan.created_at)
        self._apply(model, plan)

        for record in plan.payment_schedule:
            model.payments.append(
                PaymentRecordModel(plan_id=str(plan.id), **self._record_fields(record))
            )

        self._session.add(model)
        await self._session.flush()

        return plan

    async def update(self, plan: InstallmentPlan) -> InstallmentPlan:
        model = await self._load(plan.id)

        if model is None:
            raise ValueError(f"Plan {plan.id} not found")

        self._apply(model, plan)

        by_number = {payment.payment_number: payment for payment in model.payments}
        for record in plan.payment_schedule:
            payment = by_number.get(record.payment_number)
            if payment is None:
                model.payments.append(
                    PaymentRecordModel(plan_id=str(plan.id), **self._record_fields(record))
                )
                continue
            for name, value in self._record_fields(record).items():
                setattr(payment, name, value)

        await self._session.flush()

        return plan

    async def get_by_id(
        self,
        plan_id: UUID,
        for_update: bool = False,
    ) -> Optional[InstallmentPlan]:
        model = await self._load(plan_id, for_update=for_update)

        if model is None:
            return None

        return self._to_entity(model)

    async def get_id_by_billing_ref(self, billing_ref: str) -> Optional[UUID]:
        stmt = select(InstallmentPlanModel.id).where(
            InstallmentPlanModel.external_billing_ref == billing_ref
        )
        result = await self._session.execute(stmt)
        plan_id = result.scalar_one_or_none()

        return UUID(plan_id) if plan_id is not None else None

    async def get_by_customer_id(self, customer_id: str) -> List[InstallmentPlan]:
        return await self.list(customer_id=customer_id, limit=1000)

    async def list(
        self,
        status: Optional[PlanStatus] = None,
        customer_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[InstallmentPlan]:
        stmt = select(InstallmentPlanModel).options(
            selectinload(InstallmentPlanModel.payments)
        )

        if status is not None:
            stmt = stmt.where(InstallmentPlanModel.status == status.value)

        if customer_id is not None:
            stmt = stmt.where(InstallmentPlanModel.customer_id == customer_id)

        stmt = (
            stmt.order_by(InstallmentPlanModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def count_for_customer(
        self,
        customer_id: str,
        statuses: List[PlanStatus],
        purchase_context_id: Optional[str] = None,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(InstallmentPlanModel)
            .where(
                InstallmentPlanModel.customer_id == customer_id,
                InstallmentPlanModel.status.in_([s.value for s in statuses]),
            )
        )

        if purchase_context_id is not None:
            stmt = stmt.where(
                InstallmentPlanModel.purchase_context_id == purchase_context_id
            )

        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def get_pending_cancellations(self, limit: int = 100) -> List[InstallmentPlan]:
        stmt = (
            select(InstallmentPlanModel)
            .options(selectinload(InstallmentPlanModel.payments))
            .where(
                InstallmentPlanModel.billing_cancellation_pending.is_(True),
                InstallmentPlanModel.status.in_([s.value for s in TERMINAL_STATUSES]),
            )
            .order_by(InstallmentPlanModel.created_at.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def totals(self) -> PlanTotals:
        stmt = select(
            InstallmentPlanModel.status,
            func.count(InstallmentPlanModel.id),
            func.coalesce(func.sum(InstallmentPlanModel.financed_cents), 0),
            func.coalesce(func.sum(InstallmentPlanModel.total_paid_cents), 0),
        ).group_by(InstallmentPlanModel.status)
        result = await self._session.execute(stmt)

        counts = {}
        financed = 0
        collected = 0
        for status, count, financed_sum, collected_sum in result.all():
            counts[status] = count
            financed += int(financed_sum)
            collected += int(collected_sum)

        return PlanTotals(
            counts_by_status=counts,
            total_financed_cents=financed,
            total_collected_cents=collected,
        )

    async def commit(self) -> None:
        await self._session.commit()

    async def _load(
        self,
        plan_id: UUID,
        for_update: bool = False,
    ) -> Optional[InstallmentPlanModel]:
        stmt = (
            select(InstallmentPlanModel)
            .options(selectinload(InstallmentPlanModel.payments))
            .where(InstallmentPlanModel.id == str(plan_id))
        )

        if for_update:
            # Re-read the row even if this session already holds it
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _apply(self, model: InstallmentPlanModel, plan: InstallmentPlan) -> None:
        model.customer_id = plan.customer_id
        model.purchase_context_id = plan.purchase_context_id
        model.product_label = plan.product_label
        model.template_id = plan.template_id
        model.frequency = plan.frequency.value
        model.number_of_payments = plan.number_of_payments
        model.total_cents = plan.total_cents
        model.down_payment_cents = plan.down_payment_cents
        model.processing_fee_cents = plan.processing_fee_cents
        model.financed_cents = plan.financed_cents
        model.installment_cents = plan.installment_cents
        model.status = plan.status.value
        model.payments_completed = plan.payments_completed
        model.total_paid_cents = plan.total_paid_cents
        model.failed_payment_attempts = plan.failed_payment_attempts
        model.last_failed_payment_at = plan.last_failed_payment_at
        model.next_payment_date = plan.next_payment_date
        model.external_billing_ref = plan.external_billing_ref
        model.billing_cancellation_pending = plan.billing_cancellation_pending
        model.activated_at = plan.activated_at
        model.completed_at = plan.completed_at
        model.cancelled_at = plan.cancelled_at
        model.defaulted_at = plan.defaulted_at
        model.cancel_reason = plan.cancel_reason
        model.cancelled_by = plan.cancelled_by

    @staticmethod
    def _record_fields(record: PaymentRecord) -> dict:
        return {
            "payment_number": record.payment_number,
            "due_date": record.due_date,
            "amount_cents": record.amount_cents,
            "status": record.status.value,
            "paid_at": record.paid_at,
            "external_payment_ref": record.external_payment_ref,
            "charged_cents": record.charged_cents,
            "failure_reason": record.failure_reason,
        }

    def _to_entity(self, model: InstallmentPlanModel) -> InstallmentPlan:
        schedule = [
            PaymentRecord(
                payment_number=payment.payment_number,
                due_date=payment.due_date,
                amount_cents=payment.amount_cents,
                status=PaymentStatus(payment.status),
                paid_at=payment.paid_at,
                external_payment_ref=payment.external_payment_ref,
                charged_cents=payment.charged_cents,
                failure_reason=payment.failure_reason,
            )
            for payment in model.payments
        ]

        return InstallmentPlan(
            id=UUID(model.id),
            customer_id=model.customer_id,
            purchase_context_id=model.purchase_context_id,
            product_label=model.product_label,
            template_id=model.template_id,
            frequency=PaymentFrequency(model.frequency),
            number_of_payments=model.number_of_payments,
            total_cents=model.total_cents,
            down_payment_cents=model.down_payment_cents,
            processing_fee_cents=model.processing_fee_cents,
            financed_cents=model.financed_cents,
            installment_cents=model.installment_cents,
            payment_schedule=schedule,
            status=PlanStatus(model.status),
            payments_completed=model.payments_completed,
            total_paid_cents=model.total_paid_cents,
            failed_payment_attempts=model.failed_payment_attempts,
            last_failed_payment_at=model.last_failed_payment_at,
            next_payment_date=model.next_payment_date,
            external_billing_ref=model.external_billing_ref,
            billing_cancellation_pending=model.billing_cancellation_pending,
            created_at=model.created_at,
            activated_at=model.activated_at,
            completed_at=model.completed_at,
            cancelled_at=model.cancelled_at,
            defaulted_at=model.defaulted_at,
            cancel_reason=model.cancel_reason,
            cancelled_by=model.cancelled_by,
        )
