"""Inbound billing processor webhooks."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Request

from financing_gateway.application.services import WebhookService
from financing_gateway.core.dependencies import get_webhook_service
from financing_gateway.presentation.schemas import ErrorResponseSchema, WebhookAckSchema

webhook_router = APIRouter(prefix="/webhooks")


@webhook_router.post(
    "/billing",
    response_model=WebhookAckSchema,
    summary="Billing Processor Webhook",
    description="""
    Receives Stripe events. The raw body is verified against the
    Stripe-Signature header before anything is parsed.

    Redelivered, unhandled and unknown-reference events are acknowledged
    with 200 so the processor stops retrying them.
    """,
    responses={
        400: {"model": ErrorResponseSchema, "description": "Signature verification failed"},
    },
)
async def receive_billing_webhook(
    request: Request,
    webhook_service: Annotated[WebhookService, Depends(get_webhook_service)],
    stripe_signature: Annotated[Optional[str], Header(alias="Stripe-Signature")] = None,
) -> WebhookAckSchema:
    payload = await request.body()
    ack = await webhook_service.handle(payload, stripe_signature)
    return WebhookAckSchema.model_validate(ack)
