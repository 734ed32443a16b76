"""Webhook service - reconciles plans with inbound processor events."""

from typing import Any, Callable, Dict, Optional

import structlog

from financing_gateway.core.locks import KeyedLockRegistry, plan_locks
from financing_gateway.core.metrics import record_webhook_event
from financing_gateway.domain.entities import (
    BillingEvent,
    TransitionOutcome,
    WebhookEventRecord,
    WebhookEventStatus,
)
from financing_gateway.domain.exceptions import UnknownWebhookReferenceException
from financing_gateway.domain.interfaces import BillingGateway, WebhookEventRepository
from financing_gateway.application.dto import WebhookAck

from .plan_service import PlanService

logger = structlog.get_logger(__name__)

EventNormalizer = Callable[[Dict[str, Any]], Optional[BillingEvent]]


class WebhookService:
    """
    Application service for inbound billing webhooks.

    Flow per delivery:
        1. Verify the signature and decode the body (gateway)
        2. Drop events whose id was already processed or ignored
        3. Record the event as received and commit
        4. Normalize and hand it to the plan lifecycle; the record is marked
           processed in the same transaction as the plan change
        5. Record the outcome

    An event that fails before that commit is recorded as failed and the
    error is raised, so the processor delivers it again. A failure after
    the commit leaves the record processed, so a redelivery is a duplicate.
    """

    def __init__(
        self,
        webhook_repository: WebhookEventRepository,
        plan_service: PlanService,
        billing_gateway: BillingGateway,
        normalizer: EventNormalizer,
        locks: KeyedLockRegistry = plan_locks,
    ):
        self._webhook_repo = webhook_repository
        self._plan_service = plan_service
        self._gateway = billing_gateway
        self._normalize = normalizer
        self._locks = locks

    async def handle(self, payload: bytes, signature: Optional[str]) -> WebhookAck:
        """
        Process one webhook delivery.

        Raises:
            InvalidWebhookSignatureException: If verification fails
        """
        event = self._gateway.parse_webhook(payload, signature)
        event_id = event.get("id", "")
        event_type = event.get("type", "unknown")

        log = logger.bind(event_id=event_id, event_type=event_type)

        async with self._locks.acquire(f"event:{event_id}"):
            record = await self._webhook_repo.get_by_event_id(event_id)

            if record is not None and record.is_settled:
                log.info("webhook_duplicate", status=record.status.value)
                record_webhook_event(event_type, "duplicate")
                return WebhookAck(event_id=event_id, event_type=event_type, outcome="duplicate")

            if record is None:
                record = WebhookEventRecord(
                    event_id=event_id,
                    event_type=event_type,
                    payload=event,
                )
                await self._webhook_repo.save(record)
                await self._webhook_repo.commit()

            log.info("webhook_received")

            try:
                ack = await self._dispatch(record, event)
            except Exception as e:
                await self._webhook_repo.rollback()
                stored = await self._webhook_repo.get_by_event_id(event_id)
                if stored is not None and stored.is_settled:
                    # Plan change and record already committed together
                    log.error(
                        "webhook_failed_after_commit",
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise

                record.mark_failed(str(e))
                await self._webhook_repo.update(record)
                await self._webhook_repo.commit()
                record_webhook_event(event_type, WebhookEventStatus.FAILED.value)
                log.error("webhook_processing_failed", error=str(e), error_type=type(e).__name__)
                raise

            await self._webhook_repo.update(record)
            await self._webhook_repo.commit()

        record_webhook_event(event_type, ack.outcome)
        log.info("webhook_handled", outcome=ack.outcome, plan_id=ack.plan_id)

        return ack

    async def _dispatch(self, record: WebhookEventRecord, event: Dict[str, Any]) -> WebhookAck:
        billing_event = self._normalize(event)

        if billing_event is None:
            record.mark_ignored("unhandled_event_type")
            return WebhookAck(
                event_id=record.event_id,
                event_type=record.event_type,
                outcome=WebhookEventStatus.IGNORED.value,
                detail="unhandled_event_type",
            )

        async def mark_processed(outcome: TransitionOutcome) -> None:
            record.mark_processed()
            await self._webhook_repo.update(record)

        try:
            outcome = await self._plan_service.apply_event(
                billing_event,
                before_commit=mark_processed,
            )
        except UnknownWebhookReferenceException as e:
            logger.warning(
                "webhook_unknown_reference",
                event_id=record.event_id,
                billing_ref=e.billing_ref,
            )
            record.mark_ignored("unknown_reference")
            return WebhookAck(
                event_id=record.event_id,
                event_type=record.event_type,
                outcome=WebhookEventStatus.IGNORED.value,
                detail="unknown_reference",
            )

        return WebhookAck(
            event_id=record.event_id,
            event_type=record.event_type,
            outcome=outcome.result.value,
            plan_id=str(outcome.plan_id),
        )
