"""Stripe implementation of BillingGateway."""

import asyncio
import json
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict
from uuid import UUID

import stripe
import structlog

from financing_gateway.core.config import settings
from financing_gateway.core.metrics import (
    record_gateway_failure,
    record_gateway_retry,
    track_gateway_latency,
)
from financing_gateway.domain.entities import PaymentFrequency
from financing_gateway.domain.exceptions import (
    BillingGatewayException,
    GatewayUnavailableException,
    InvalidCustomerException,
    InvalidWebhookSignatureException,
)
from financing_gateway.domain.interfaces import BillingGateway, RecurringBilling

logger = structlog.get_logger(__name__)

# Stripe recurring interval for each plan frequency
RECURRING_INTERVALS = {
    PaymentFrequency.WEEKLY: {"interval": "week", "interval_count": 1},
    PaymentFrequency.BIWEEKLY: {"interval": "week", "interval_count": 2},
    PaymentFrequency.MONTHLY: {"interval": "month", "interval_count": 1},
}

TRANSIENT_ERRORS = (
    stripe.APIConnectionError,
    stripe.RateLimitError,
    stripe.APIError,
)

CUSTOMER_PARAMS = ("customer", "customer_email")

LIVE_SUBSCRIPTION_STATES = ("trialing", "active", "past_due", "unpaid", "incomplete", "paused")


class StripeBillingGateway(BillingGateway):
    """
    Stripe client for recurring installment billing.

    Each plan gets its own Product and recurring Price; the Price id is the
    plan's billing reference. The customer completes a Checkout Session in
    subscription mode whose trial ends on the first due date, so the first
    charge lands on schedule. Stripe subscriptions have no occurrence
    limit, the plan cancels the subscription once it reaches a terminal
    state.

    The SDK is synchronous; calls run in a worker thread with a timeout
    and are retried with exponential backoff on transient errors.
    """

    def __init__(
        self,
        api_key: str | None = None,
        webhook_secret: str | None = None,
        currency: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
    ):
        self._api_key = api_key or settings.stripe_secret_key
        self._webhook_secret = webhook_secret or settings.stripe_webhook_secret
        self._currency = currency or settings.billing_currency
        self._timeout = timeout if timeout is not None else settings.billing_gateway_timeout
        self._max_retries = (
            max_retries if max_retries is not None else settings.billing_gateway_max_retries
        )
        self._backoff_base = (
            backoff_base if backoff_base is not None else settings.billing_gateway_backoff_base
        )

        if self._timeout <= 0:
            raise ValueError("timeout must be positive")
        # Counts attempts, the first call included
        if self._max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    async def create_recurring_billing(
        self,
        customer_ref: str,
        installment_cents: int,
        frequency: PaymentFrequency,
        total_occurrences: int,
        first_charge_date: date,
        plan_id: UUID,
        product_label: str,
    ) -> RecurringBilling:
        operation = "create_recurring_billing"
        metadata = {
            "plan_id": str(plan_id),
            "total_occurrences": str(total_occurrences),
        }

        with track_gateway_latency(operation):
            product = await self._call(
                operation,
                stripe.Product.create,
                name=product_label[:250] or "Installment plan",
                metadata=metadata,
                idempotency_key=f"{plan_id}:product",
            )

            price = await self._call(
                operation,
                stripe.Price.create,
                product=product.id,
                unit_amount=installment_cents,
                currency=self._currency,
                recurring=RECURRING_INTERVALS[PaymentFrequency(frequency)],
                metadata=metadata,
                idempotency_key=f"{plan_id}:price",
            )

            billing_metadata = {**metadata, "billing_ref": price.id}
            trial_end = datetime.combine(first_charge_date, time.min, tzinfo=timezone.utc)

            session_params: Dict[str, Any] = {
                "mode": "subscription",
                "line_items": [{"price": price.id, "quantity": 1}],
                "success_url": settings.checkout_success_url,
                "cancel_url": settings.checkout_cancel_url,
                "subscription_data": {
                    "trial_end": int(trial_end.timestamp()),
                    "metadata": billing_metadata,
                },
                "metadata": billing_metadata,
                "client_reference_id": str(plan_id),
                "idempotency_key": f"{plan_id}:checkout",
            }
            if customer_ref.startswith("cus_"):
                session_params["customer"] = customer_ref
            else:
                session_params["customer_email"] = customer_ref

            try:
                session = await self._call(
                    operation,
                    stripe.checkout.Session.create,
                    **session_params,
                )
            except BillingGatewayException as e:
                if isinstance(e.__cause__, stripe.InvalidRequestError) and (
                    e.__cause__.param in CUSTOMER_PARAMS
                ):
                    raise InvalidCustomerException(
                        customer_ref,
                        detail=e.__cause__.user_message or "",
                    ) from e.__cause__
                raise

        logger.info(
            "recurring_billing_created",
            plan_id=str(plan_id),
            billing_ref=price.id,
            checkout_session_id=session.id,
            frequency=PaymentFrequency(frequency).value,
            installment_cents=installment_cents,
        )

        return RecurringBilling(
            billing_ref=price.id,
            checkout_url=session.url,
            checkout_session_id=session.id,
        )

    async def cancel_recurring_billing(self, billing_ref: str) -> None:
        operation = "cancel_recurring_billing"

        with track_gateway_latency(operation):
            subscriptions = await self._call(
                operation,
                stripe.Subscription.list,
                price=billing_ref,
                status="all",
                limit=100,
            )

            cancelled = 0
            for subscription in subscriptions.data:
                if subscription.status not in LIVE_SUBSCRIPTION_STATES:
                    continue
                await self._call(
                    operation,
                    stripe.Subscription.cancel,
                    subscription.id,
                    idempotency_key=f"{billing_ref}:cancel:{subscription.id}",
                )
                cancelled += 1

            # No new checkouts against a finished plan
            await self._call(
                operation,
                stripe.Price.modify,
                billing_ref,
                active=False,
            )

        logger.info(
            "recurring_billing_cancelled",
            billing_ref=billing_ref,
            subscriptions_cancelled=cancelled,
        )

    def parse_webhook(self, payload: bytes, signature: str | None) -> Dict[str, Any]:
        if not signature:
            raise InvalidWebhookSignatureException("Missing Stripe-Signature header")

        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning("webhook_signature_invalid", error=str(e))
            raise InvalidWebhookSignatureException() from e
        except ValueError as e:
            logger.warning("webhook_payload_invalid", error=str(e))
            raise InvalidWebhookSignatureException("Malformed webhook payload") from e

        return json.loads(payload)

    async def _call(self, operation: str, method: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run one SDK call with timeout and retries.

        Transient errors (connection, rate limit, 5xx, timeout) are retried
        with exponential backoff; every other Stripe error is definitive.
        """
        kwargs.setdefault("api_key", self._api_key)

        for attempt in range(self._max_retries):
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(method, *args, **kwargs),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError:
                record_gateway_failure(operation, "timeout")
                logger.warning(
                    "billing_gateway_timeout",
                    operation=operation,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except TRANSIENT_ERRORS as e:
                record_gateway_failure(operation, type(e).__name__)
                logger.warning(
                    "billing_gateway_transient_error",
                    operation=operation,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                    error=str(e),
                )
            except stripe.StripeError as e:
                record_gateway_failure(operation, type(e).__name__)
                logger.error(
                    "billing_gateway_rejected",
                    operation=operation,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise BillingGatewayException(
                    message=f"Billing processor rejected {operation}: {e.user_message or e}",
                    operation=operation,
                ) from e

            # Exponential backoff
            if attempt < self._max_retries - 1:
                record_gateway_retry(operation)
                await asyncio.sleep(2**attempt * self._backoff_base)

        raise GatewayUnavailableException(operation, self._max_retries)
