"""Eligibility service - loads the inputs of the eligibility rules."""

from datetime import date

import structlog

from financing_gateway.core.metrics import record_eligibility
from financing_gateway.domain.entities import EligibilityResult, PlanStatus
from financing_gateway.domain.interfaces import (
    PlanRepository,
    ProfileRepository,
    TemplateRepository,
)
from financing_gateway.application.dto import EligibilityResponse, TemplateResponse
from financing_gateway.service.eligibility import evaluate_eligibility
from financing_gateway.service.schedule import generate_schedule

logger = structlog.get_logger(__name__)


class EligibilityService:
    """
    Application service for eligibility checks.

    Reads only; the decision itself is made by the pure rules in
    `financing_gateway.service.eligibility`.
    """

    def __init__(
        self,
        profile_repository: ProfileRepository,
        template_repository: TemplateRepository,
        plan_repository: PlanRepository,
    ):
        self._profile_repo = profile_repository
        self._template_repo = template_repository
        self._plan_repo = plan_repository

    async def evaluate(self, customer_id: str, amount_cents: int) -> EligibilityResult:
        """
        Decide whether a customer may finance an amount.

        Args:
            customer_id: The customer's identifier
            amount_cents: Purchase amount in cents

        Returns:
            EligibilityResult with the candidate templates
        """
        profile = await self._profile_repo.get(customer_id)
        templates = await self._template_repo.list(active=True)
        defaulted = await self._plan_repo.count_for_customer(
            customer_id,
            [PlanStatus.DEFAULTED],
        )

        result = evaluate_eligibility(profile, amount_cents, templates, defaulted)
        record_eligibility(result.eligible)

        logger.info(
            "eligibility_evaluated",
            customer_id=customer_id,
            amount_cents=amount_cents,
            eligible=result.eligible,
            reason=result.reason,
            candidates=len(result.candidate_templates),
        )

        return result

    async def check(self, customer_id: str, amount_cents: int) -> EligibilityResponse:
        """Evaluate and quote every candidate template for the amount."""
        result = await self.evaluate(customer_id, amount_cents)
        today = date.today()

        options = []
        for template in result.candidate_templates:
            try:
                quote = generate_schedule(template, amount_cents, today)
            except ValueError:
                # Band admits an amount too small to split into its payments
                continue
            options.append(TemplateResponse.from_entity(template, quote=quote))

        return EligibilityResponse(
            customer_id=customer_id,
            amount_cents=amount_cents,
            eligible=result.eligible,
            reason=result.reason,
            templates=options,
        )
