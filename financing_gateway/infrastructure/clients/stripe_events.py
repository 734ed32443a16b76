"""
Translation of Stripe webhook events into normalized billing events.

Only the event types that move a plan are mapped; everything else
normalizes to None and is recorded as ignored by the caller.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from financing_gateway.domain.entities import (
    BillingConfirmed,
    BillingEvent,
    PaymentFailed,
    PaymentSucceeded,
)

SUBSCRIPTION_CREATED = "customer.subscription.created"
INVOICE_PAID_EVENTS = ("invoice.payment_succeeded", "invoice.paid")
INVOICE_FAILED = "invoice.payment_failed"

DEFAULT_FAILURE_CODE = "invoice_payment_failed"


def normalize_event(event: Dict[str, Any]) -> Optional[BillingEvent]:
    """
    Map a verified Stripe event to a BillingEvent.

    Args:
        event: Decoded Stripe event body

    Returns:
        The normalized event, or None when the event does not concern a plan
    """
    event_type = event.get("type", "")
    obj = event.get("data", {}).get("object", {}) or {}
    event_id = event.get("id", "")
    occurred_at = _timestamp(event.get("created"))

    if event_type == SUBSCRIPTION_CREATED:
        billing_ref = _subscription_billing_ref(obj)
        if billing_ref is None:
            return None
        return BillingConfirmed(
            billing_ref=billing_ref,
            occurred_at=occurred_at,
            event_id=event_id,
        )

    if event_type in INVOICE_PAID_EVENTS:
        billing_ref = _invoice_billing_ref(obj)
        amount_paid = obj.get("amount_paid") or 0
        # $0 trial invoices are not installments
        if billing_ref is None or amount_paid <= 0:
            return None
        return PaymentSucceeded(
            billing_ref=billing_ref,
            amount_cents=int(amount_paid),
            payment_ref=_payment_ref(obj),
            occurred_at=occurred_at,
            event_id=event_id,
        )

    if event_type == INVOICE_FAILED:
        billing_ref = _invoice_billing_ref(obj)
        if billing_ref is None:
            return None
        return PaymentFailed(
            billing_ref=billing_ref,
            reason_code=_failure_code(obj),
            occurred_at=occurred_at,
            event_id=event_id,
        )

    return None


def _timestamp(value: Any) -> datetime:
    if value is None:
        return datetime.utcnow()
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _subscription_billing_ref(subscription: Dict[str, Any]) -> Optional[str]:
    ref = (subscription.get("metadata") or {}).get("billing_ref")
    if ref:
        return ref

    items = (subscription.get("items") or {}).get("data") or []
    if items:
        return (items[0].get("price") or {}).get("id")
    return None


def _invoice_billing_ref(invoice: Dict[str, Any]) -> Optional[str]:
    ref = (invoice.get("metadata") or {}).get("billing_ref")
    if ref:
        return ref

    # Subscription metadata moved under `parent` in newer API versions
    details = invoice.get("subscription_details") or (
        (invoice.get("parent") or {}).get("subscription_details") or {}
    )
    ref = (details.get("metadata") or {}).get("billing_ref")
    if ref:
        return ref

    lines = (invoice.get("lines") or {}).get("data") or []
    if not lines:
        return None

    line = lines[0]
    price = line.get("price") or {}
    if price.get("id"):
        return price["id"]

    pricing = (line.get("pricing") or {}).get("price_details") or {}
    return pricing.get("price")


def _payment_ref(invoice: Dict[str, Any]) -> str:
    payment_intent = invoice.get("payment_intent")
    if isinstance(payment_intent, dict):
        payment_intent = payment_intent.get("id")
    return payment_intent or invoice.get("id", "")


def _failure_code(invoice: Dict[str, Any]) -> str:
    """
    Decline code of a failed invoice.

    The payment intent's last error is preferred, then the charge's
    failure code. Both are only present when expanded in the event.
    """
    intent = invoice.get("payment_intent")
    if isinstance(intent, dict):
        code = (intent.get("last_payment_error") or {}).get("code")
        if code:
            return code

    charge = invoice.get("charge")
    if isinstance(charge, dict) and charge.get("failure_code"):
        return charge["failure_code"]

    code = (invoice.get("last_finalization_error") or {}).get("code")
    return code or DEFAULT_FAILURE_CODE
