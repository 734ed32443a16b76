"""Template service - financing catalog use cases."""

from datetime import date, datetime
from typing import List, Optional

import structlog

from financing_gateway.domain.entities import FinancingTemplate
from financing_gateway.domain.exceptions import (
    DuplicateTemplateException,
    InvalidTemplateException,
    TemplateNotFoundException,
)
from financing_gateway.domain.interfaces import TemplateRepository
from financing_gateway.application.dto import TemplateRequest, TemplateResponse
from financing_gateway.service.schedule import generate_schedule

logger = structlog.get_logger(__name__)


class TemplateService:
    """
    Application service for the financing catalog.

    Templates are never deleted; removing one deactivates it so existing
    plans keep a valid reference.
    """

    def __init__(self, template_repository: TemplateRepository):
        self._template_repo = template_repository

    async def list_available(self, amount_cents: Optional[int] = None) -> List[TemplateResponse]:
        """
        List active templates, optionally only those covering an amount.

        When an amount is given each template carries a quote for it.
        """
        templates = await self._template_repo.list(active=True, amount_cents=amount_cents)

        if amount_cents is None:
            return [TemplateResponse.from_entity(t) for t in templates]

        responses = []
        for template in templates:
            try:
                quote = generate_schedule(template, amount_cents, date.today())
            except ValueError:
                continue
            responses.append(TemplateResponse.from_entity(template, quote=quote))
        return responses

    async def list_templates(self, active: Optional[bool] = None) -> List[TemplateResponse]:
        templates = await self._template_repo.list(active=active)
        return [TemplateResponse.from_entity(t) for t in templates]

    async def get_template(self, template_id: str) -> TemplateResponse:
        template = await self._get(template_id)
        return TemplateResponse.from_entity(template)

    async def create_template(self, request: TemplateRequest) -> TemplateResponse:
        """
        Add a template to the catalog.

        Raises:
            InvalidTemplateException: If the fields are inconsistent
            DuplicateTemplateException: If the template_id is taken
        """
        template = self._build(request)

        if await self._template_repo.get_by_id(template.template_id) is not None:
            raise DuplicateTemplateException(template.template_id)

        await self._template_repo.save(template)

        logger.info(
            "template_created",
            template_id=template.template_id,
            number_of_payments=template.number_of_payments,
            frequency=template.frequency.value,
        )

        return TemplateResponse.from_entity(template)

    async def update_template(self, template_id: str, request: TemplateRequest) -> TemplateResponse:
        """Replace a template's terms and bump its version."""
        current = await self._get(template_id)
        template = self._build(request)

        template.template_id = current.template_id
        template.created_at = current.created_at
        template.version = current.version + 1
        template.updated_at = datetime.utcnow()

        await self._template_repo.update(template)

        logger.info(
            "template_updated",
            template_id=template.template_id,
            version=template.version,
        )

        return TemplateResponse.from_entity(template)

    async def deactivate_template(self, template_id: str) -> TemplateResponse:
        template = await self._get(template_id)

        if template.is_active:
            template.is_active = False
            template.version += 1
            template.updated_at = datetime.utcnow()
            await self._template_repo.update(template)
            logger.info("template_deactivated", template_id=template_id)

        return TemplateResponse.from_entity(template)

    async def _get(self, template_id: str) -> FinancingTemplate:
        template = await self._template_repo.get_by_id(template_id)
        if template is None:
            raise TemplateNotFoundException(template_id)
        return template

    def _build(self, request: TemplateRequest) -> FinancingTemplate:
        errors = request.validate()
        if errors:
            raise InvalidTemplateException("; ".join(errors))

        template = request.to_entity()
        errors = template.validate()
        if errors:
            raise InvalidTemplateException("; ".join(errors))

        return template
