"""Plan service - the installment plan lifecycle manager."""

from datetime import date
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

import structlog

from financing_gateway.core.locks import KeyedLockRegistry, plan_locks
from financing_gateway.core.metrics import (
    record_plan_created,
    record_transition,
    set_cancellations_pending,
)
from financing_gateway.domain.entities import (
    BillingEvent,
    InstallmentPlan,
    PlanStatus,
    TransitionOutcome,
)
from financing_gateway.domain.exceptions import (
    BillingGatewayException,
    IneligibleException,
    InvalidCustomerException,
    InvalidPlanRequestException,
    PlanNotFoundException,
    TemplateNotFoundException,
    UnknownWebhookReferenceException,
)
from financing_gateway.domain.interfaces import (
    BillingGateway,
    PlanRepository,
    ProfileRepository,
)
from financing_gateway.application.dto import (
    CancelPlanRequest,
    CheckoutDTO,
    CreatePlanRequest,
    CreatePlanResponse,
    PlanResponse,
    ReconciliationResponse,
)
from financing_gateway.service.schedule import generate_schedule

from .eligibility_service import EligibilityService
from .profile_service import OPEN_STATUSES, customer_lock_key

logger = structlog.get_logger(__name__)

OutcomeHook = Callable[[TransitionOutcome], Awaitable[None]]


class PlanService:
    """
    Application service for installment plan use cases.

    Every mutation of an existing plan runs under the plan's lock, reads
    the row FOR UPDATE and commits before the lock is released, so events
    for one plan apply one at a time against the latest committed state.
    Plan creation runs under the customer's lock.

    External cancellation is best-effort: a failure is logged and leaves
    `billing_cancellation_pending` set for `retry_pending_cancellations`.
    """

    def __init__(
        self,
        plan_repository: PlanRepository,
        profile_repository: ProfileRepository,
        eligibility_service: EligibilityService,
        billing_gateway: BillingGateway,
        locks: KeyedLockRegistry = plan_locks,
    ):
        self._plan_repo = plan_repository
        self._profile_repo = profile_repository
        self._eligibility = eligibility_service
        self._gateway = billing_gateway
        self._locks = locks

    async def create_plan(self, request: CreatePlanRequest) -> CreatePlanResponse:
        """
        Create a PENDING plan and set up its recurring billing.

        Eligibility is evaluated again under the customer's lock; the
        recurring billing is created before the plan is persisted, so a
        gateway failure leaves nothing behind.

        Args:
            request: Customer, template and purchase details

        Returns:
            CreatePlanResponse with the plan and its checkout handle

        Raises:
            InvalidPlanRequestException: If the request is invalid
            IneligibleException: If the customer may not finance the amount
            TemplateNotFoundException: If the template is not offered
            GatewayUnavailableException: If the processor stays unreachable
            InvalidCustomerException: If the processor rejects the customer
        """
        errors = request.validate()
        if errors:
            raise InvalidPlanRequestException("; ".join(errors))

        log = logger.bind(
            customer_id=request.customer_id,
            template_id=request.template_id,
            total_cents=request.total_cents,
        )

        async with self._locks.acquire(customer_lock_key(request.customer_id)):
            result = await self._eligibility.evaluate(request.customer_id, request.total_cents)
            if not result.eligible:
                log.info("plan_refused", reason=result.reason)
                raise IneligibleException(request.customer_id, result.reason)

            template = result.template(request.template_id)
            if template is None:
                raise TemplateNotFoundException(request.template_id)

            if request.purchase_context_id is not None:
                open_for_purchase = await self._plan_repo.count_for_customer(
                    request.customer_id,
                    OPEN_STATUSES,
                    purchase_context_id=request.purchase_context_id,
                )
                if open_for_purchase > 0:
                    raise InvalidPlanRequestException(
                        f"An open installment plan already exists for purchase "
                        f"{request.purchase_context_id}"
                    )

            profile = await self._profile_repo.get(request.customer_id)
            if profile is None or not profile.customer_ref:
                raise InvalidCustomerException(
                    None,
                    detail="no billing customer or email on file",
                )

            try:
                quote = generate_schedule(template, request.total_cents, date.today())
            except ValueError as e:
                raise InvalidPlanRequestException(str(e)) from e

            plan = InstallmentPlan.open(
                customer_id=request.customer_id,
                template_id=template.template_id,
                product_label=request.product_label,
                frequency=template.frequency,
                total_cents=quote.total_cents,
                down_payment_cents=quote.down_payment_cents,
                processing_fee_cents=quote.processing_fee_cents,
                financed_cents=quote.financed_cents,
                installment_cents=quote.installment_cents,
                payment_schedule=quote.payments,
                purchase_context_id=request.purchase_context_id,
            )

            billing = await self._gateway.create_recurring_billing(
                customer_ref=profile.customer_ref,
                installment_cents=quote.installment_cents,
                frequency=template.frequency,
                total_occurrences=template.number_of_payments,
                first_charge_date=quote.first_due_date,
                plan_id=plan.id,
                product_label=request.product_label,
            )
            plan.attach_billing(billing.billing_ref)

            await self._plan_repo.save(plan)
            await self._plan_repo.commit()

        record_plan_created(plan.frequency.value, plan.financed_cents)
        log.info(
            "plan_created",
            plan_id=str(plan.id),
            billing_ref=billing.billing_ref,
            number_of_payments=plan.number_of_payments,
            financed_cents=plan.financed_cents,
        )

        return CreatePlanResponse(
            plan=PlanResponse.from_entity(plan),
            checkout=CheckoutDTO(
                billing_ref=billing.billing_ref,
                checkout_url=billing.checkout_url,
                checkout_session_id=billing.checkout_session_id,
            ),
        )

    async def apply_event(
        self,
        event: BillingEvent,
        before_commit: Optional[OutcomeHook] = None,
    ) -> TransitionOutcome:
        """
        Apply a normalized billing event to the plan it references.

        Args:
            event: The normalized processor event
            before_commit: Awaited with the outcome inside the plan's
                transaction, so writes it makes commit together with the
                plan change

        Raises:
            UnknownWebhookReferenceException: If no plan has the billing ref
        """
        plan_id = await self._plan_repo.get_id_by_billing_ref(event.billing_ref)
        if plan_id is None:
            raise UnknownWebhookReferenceException(event.billing_ref)

        async with self._locks.acquire(str(plan_id)):
            plan = await self._load_for_update(plan_id)
            outcome = plan.apply(event)

            if outcome.changed:
                if outcome.requires_billing_cancellation:
                    await self._cancel_billing(plan)
                await self._plan_repo.update(plan)

            if before_commit is not None:
                await before_commit(outcome)
            await self._plan_repo.commit()

        if not outcome.changed:
            logger.info(
                "billing_event_noop",
                plan_id=str(plan_id),
                event_type=type(event).__name__,
                event_id=event.event_id,
                result=outcome.result.value,
                status=plan.status.value,
            )
            return outcome

        self._record(outcome)
        logger.info(
            "billing_event_applied",
            plan_id=str(plan_id),
            event_type=type(event).__name__,
            event_id=event.event_id,
            result=outcome.result.value,
            from_status=outcome.from_status.value,
            to_status=outcome.to_status.value,
            payments_completed=plan.payments_completed,
            failed_payment_attempts=plan.failed_payment_attempts,
        )

        return outcome

    async def cancel_plan(self, plan_id: UUID, request: CancelPlanRequest) -> PlanResponse:
        """
        Cancel a PENDING or ACTIVE plan.

        Raises:
            InvalidPlanRequestException: If the request is invalid
            PlanNotFoundException: If the plan does not exist
            InvalidTransitionException: If the plan is already terminal
        """
        errors = request.validate()
        if errors:
            raise InvalidPlanRequestException("; ".join(errors))

        async with self._locks.acquire(str(plan_id)):
            plan = await self._load_for_update(plan_id)
            outcome = plan.cancel(reason=request.reason, actor=request.actor)

            if outcome.requires_billing_cancellation:
                await self._cancel_billing(plan)

            await self._plan_repo.update(plan)
            await self._plan_repo.commit()

        self._record(outcome)
        logger.info(
            "plan_cancelled",
            plan_id=str(plan_id),
            cancelled_by=request.actor,
            from_status=outcome.from_status.value,
            billing_cancellation_pending=plan.billing_cancellation_pending,
        )

        return PlanResponse.from_entity(plan)

    async def get_plan(self, plan_id: UUID) -> PlanResponse:
        """
        Retrieve an installment plan by ID.

        Raises:
            PlanNotFoundException: If plan not found
        """
        plan = await self._plan_repo.get_by_id(plan_id)

        if plan is None:
            logger.warning("plan_not_found", plan_id=str(plan_id))
            raise PlanNotFoundException(str(plan_id))

        return PlanResponse.from_entity(plan)

    async def list_plans_for_customer(self, customer_id: str) -> List[PlanResponse]:
        plans = await self._plan_repo.get_by_customer_id(customer_id)

        logger.info(
            "customer_plans_retrieved",
            customer_id=customer_id,
            count=len(plans),
        )

        return [PlanResponse.from_entity(plan) for plan in plans]

    async def list_plans(
        self,
        status: Optional[PlanStatus] = None,
        customer_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[PlanResponse]:
        plans = await self._plan_repo.list(
            status=status,
            customer_id=customer_id,
            limit=limit,
            offset=offset,
        )
        return [PlanResponse.from_entity(plan) for plan in plans]

    async def retry_pending_cancellations(self, limit: int = 100) -> ReconciliationResponse:
        """Retry every external cancellation still owed by a terminal plan."""
        candidates = await self._plan_repo.get_pending_cancellations(limit=limit)
        settled = 0

        for candidate in candidates:
            async with self._locks.acquire(str(candidate.id)):
                plan = await self._plan_repo.get_by_id(candidate.id, for_update=True)
                if plan is None or not plan.billing_cancellation_pending:
                    continue

                await self._cancel_billing(plan)
                if not plan.billing_cancellation_pending:
                    settled += 1
                    await self._plan_repo.update(plan)
                    await self._plan_repo.commit()

        remaining = await self._plan_repo.get_pending_cancellations(limit=limit)
        set_cancellations_pending(len(remaining))

        logger.info(
            "cancellations_reconciled",
            attempted=len(candidates),
            settled=settled,
            still_pending=len(remaining),
        )

        return ReconciliationResponse(
            attempted=len(candidates),
            settled=settled,
            still_pending=len(remaining),
        )

    async def _load_for_update(self, plan_id: UUID) -> InstallmentPlan:
        plan = await self._plan_repo.get_by_id(plan_id, for_update=True)
        if plan is None:
            raise PlanNotFoundException(str(plan_id))
        return plan

    async def _cancel_billing(self, plan: InstallmentPlan) -> None:
        """Cancel the plan's external billing once; failures stay pending."""
        try:
            await self._gateway.cancel_recurring_billing(plan.external_billing_ref)
        except BillingGatewayException as e:
            logger.error(
                "billing_cancellation_failed",
                plan_id=str(plan.id),
                billing_ref=plan.external_billing_ref,
                error=e.message,
                code=e.code,
            )
            return

        plan.settle_billing_cancellation()

    @staticmethod
    def _record(outcome: TransitionOutcome) -> None:
        if outcome.from_status != outcome.to_status:
            record_transition(outcome.from_status.value, outcome.to_status.value)
