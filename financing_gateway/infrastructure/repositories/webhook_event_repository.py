"""PostgreSQL implementation of WebhookEventRepository."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from financing_gateway.domain.entities import WebhookEventRecord, WebhookEventStatus
from financing_gateway.domain.interfaces import WebhookEventRepository
from financing_gateway.infrastructure.database.models import WebhookEventModel


class PostgresWebhookEventRepository(WebhookEventRepository):
    """
    PostgreSQL implementation of the inbound webhook event log.

    The unique index on event_id backs redelivery detection.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, record: WebhookEventRecord) -> WebhookEventRecord:
        """Persist a newly received event."""
        model = WebhookEventModel(
            id=str(record.id),
            event_id=record.event_id,
            event_type=record.event_type,
            payload=record.payload,
            status=record.status.value,
            error_message=record.error_message,
            received_at=record.received_at,
            processed_at=record.processed_at,
        )

        self._session.add(model)
        await self._session.flush()

        return record

    async def update(self, record: WebhookEventRecord) -> WebhookEventRecord:
        """Persist the processing status of an event."""
        stmt = select(WebhookEventModel).where(WebhookEventModel.id == str(record.id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            raise ValueError(f"Webhook event {record.event_id} not found")

        model.status = record.status.value
        model.error_message = record.error_message
        model.processed_at = record.processed_at

        await self._session.flush()

        return record

    async def get_by_event_id(self, event_id: str) -> Optional[WebhookEventRecord]:
        stmt = select(WebhookEventModel).where(WebhookEventModel.event_id == event_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    def _to_entity(self, model: WebhookEventModel) -> WebhookEventRecord:
        """Convert database model to domain entity."""
        return WebhookEventRecord(
            id=UUID(model.id),
            event_id=model.event_id,
            event_type=model.event_type,
            payload=model.payload,
            status=WebhookEventStatus(model.status),
            error_message=model.error_message,
            received_at=model.received_at,
            processed_at=model.processed_at,
        )

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
