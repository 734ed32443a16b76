"""
Shared test doubles and builders.

Provides:
- FakeBillingGateway recording every processor call
- In-memory repositories for service-level tests
- Builders for templates, profiles and Stripe event payloads
"""

import asyncio
import copy
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from financing_gateway.domain.entities import (
    CustomerFinancingProfile,
    FinancingTemplate,
    InstallmentPlan,
    PaymentFrequency,
    PlanStatus,
    TERMINAL_STATUSES,
    WebhookEventRecord,
)
from financing_gateway.domain.exceptions import InvalidWebhookSignatureException
from financing_gateway.domain.interfaces import (
    BillingGateway,
    PlanRepository,
    PlanTotals,
    ProfileRepository,
    RecurringBilling,
    TemplateRepository,
    WebhookEventRepository,
)

VALID_SIGNATURE = "t=1,v1=valid"


# =============================================================================
# Billing Gateway
# =============================================================================

class FakeBillingGateway(BillingGateway):
    """Billing gateway that records calls and fails on demand."""

    def __init__(self):
        self.created: List[Dict[str, Any]] = []
        self.cancelled: List[str] = []
        self.create_error: Optional[Exception] = None
        self.cancel_error: Optional[Exception] = None
        self._sequence = 0

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
        if self.create_error is not None:
            raise self.create_error

        self._sequence += 1
        billing_ref = f"price_test_{self._sequence}"
        self.created.append({
            "billing_ref": billing_ref,
            "customer_ref": customer_ref,
            "installment_cents": installment_cents,
            "frequency": frequency,
            "total_occurrences": total_occurrences,
            "first_charge_date": first_charge_date,
            "plan_id": plan_id,
            "product_label": product_label,
        })
        return RecurringBilling(
            billing_ref=billing_ref,
            checkout_url=f"https://checkout.test/{billing_ref}",
            checkout_session_id=f"cs_test_{self._sequence}",
        )

    async def cancel_recurring_billing(self, billing_ref: str) -> None:
        self.cancelled.append(billing_ref)
        if self.cancel_error is not None:
            raise self.cancel_error

    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if signature != VALID_SIGNATURE:
            raise InvalidWebhookSignatureException()
        return json.loads(payload)


# =============================================================================
# In-memory repositories
# =============================================================================

class InMemoryTemplateRepository(TemplateRepository):
    def __init__(self, templates: Optional[List[FinancingTemplate]] = None):
        self.templates = {t.template_id: t for t in templates or []}

    async def save(self, template):
        self.templates[template.template_id] = copy.deepcopy(template)
        return template

    async def update(self, template):
        self.templates[template.template_id] = copy.deepcopy(template)
        return template

    async def get_by_id(self, template_id):
        template = self.templates.get(template_id)
        return copy.deepcopy(template) if template else None

    async def list(self, active=None, amount_cents=None):
        found = [
            copy.deepcopy(t)
            for t in self.templates.values()
            if (active is None or t.is_active == active)
            and (amount_cents is None or t.covers(amount_cents))
        ]
        return sorted(found, key=lambda t: (t.sort_order, t.template_id))


class InMemoryProfileRepository(ProfileRepository):
    def __init__(self, profiles: Optional[List[CustomerFinancingProfile]] = None):
        self.profiles = {p.customer_id: p for p in profiles or []}
        self.commits = 0

    async def get(self, customer_id):
        profile = self.profiles.get(customer_id)
        return copy.deepcopy(profile) if profile else None

    async def upsert(self, profile):
        self.profiles[profile.customer_id] = copy.deepcopy(profile)
        return profile

    async def list(self, approved=None, limit=100):
        found = [
            copy.deepcopy(p)
            for p in self.profiles.values()
            if approved is None or p.approved == approved
        ]
        return found[:limit]

    async def count_approved(self):
        return sum(1 for p in self.profiles.values() if p.approved)

    async def commit(self):
        self.commits += 1


class InMemoryPlanRepository(PlanRepository):
    """
    Stores deep copies, like a database would.

    `update` only lands in `committed` on `commit`, so tests can see
    whether a change was committed while the plan lock was held.
    """

    def __init__(self):
        self.committed: Dict[UUID, InstallmentPlan] = {}
        self._staged: Dict[UUID, InstallmentPlan] = {}
        self.commits = 0

    async def save(self, plan):
        self._staged[plan.id] = copy.deepcopy(plan)
        return plan

    async def update(self, plan):
        self._staged[plan.id] = copy.deepcopy(plan)
        return plan

    async def commit(self):
        self.committed.update(self._staged)
        self._staged.clear()
        self.commits += 1

    async def get_by_id(self, plan_id, for_update=False):
        plan = self.committed.get(plan_id)
        # Suspend like a real query so concurrent tasks can interleave
        await asyncio.sleep(0)
        return copy.deepcopy(plan) if plan else None

    async def get_id_by_billing_ref(self, billing_ref):
        for plan in self.committed.values():
            if plan.external_billing_ref == billing_ref:
                return plan.id
        return None

    async def get_by_customer_id(self, customer_id):
        return await self.list(customer_id=customer_id)

    async def list(self, status=None, customer_id=None, limit=100, offset=0):
        found = [
            copy.deepcopy(p)
            for p in self.committed.values()
            if (status is None or p.status == status)
            and (customer_id is None or p.customer_id == customer_id)
        ]
        found.sort(key=lambda p: p.created_at, reverse=True)
        return found[offset:offset + limit]

    async def count_for_customer(self, customer_id, statuses, purchase_context_id=None):
        return sum(
            1
            for p in self.committed.values()
            if p.customer_id == customer_id
            and p.status in statuses
            and (purchase_context_id is None or p.purchase_context_id == purchase_context_id)
        )

    async def get_pending_cancellations(self, limit=100):
        found = [
            copy.deepcopy(p)
            for p in self.committed.values()
            if p.billing_cancellation_pending and p.status in TERMINAL_STATUSES
        ]
        return found[:limit]

    async def totals(self):
        counts: Dict[str, int] = {}
        for plan in self.committed.values():
            counts[plan.status.value] = counts.get(plan.status.value, 0) + 1
        return PlanTotals(
            counts_by_status=counts,
            total_financed_cents=sum(p.financed_cents for p in self.committed.values()),
            total_collected_cents=sum(p.total_paid_cents for p in self.committed.values()),
        )


class InMemoryWebhookEventRepository(WebhookEventRepository):
    def __init__(self):
        self.records: Dict[str, WebhookEventRecord] = {}

    async def save(self, record):
        self.records[record.event_id] = copy.deepcopy(record)
        return record

    async def update(self, record):
        self.records[record.event_id] = copy.deepcopy(record)
        return record

    async def get_by_event_id(self, event_id):
        record = self.records.get(event_id)
        return copy.deepcopy(record) if record else None

    async def commit(self):
        pass

    async def rollback(self):
        pass


# =============================================================================
# Builders
# =============================================================================

def make_template(
    template_id: str = "4-biweekly",
    number_of_payments: int = 4,
    frequency: PaymentFrequency = PaymentFrequency.BIWEEKLY,
    min_amount_cents: int = 1000,
    max_amount_cents: int = 500000,
    down_payment_percent: str = "0",
    processing_fee_percent: str = "0",
    is_active: bool = True,
    sort_order: int = 1,
) -> FinancingTemplate:
    return FinancingTemplate(
        template_id=template_id,
        name=f"{number_of_payments} {frequency.value} payments",
        number_of_payments=number_of_payments,
        frequency=frequency,
        min_amount_cents=min_amount_cents,
        max_amount_cents=max_amount_cents,
        down_payment_percent=Decimal(down_payment_percent),
        processing_fee_percent=Decimal(processing_fee_percent),
        is_active=is_active,
        sort_order=sort_order,
    )


def make_profile(
    customer_id: str = "cust_1",
    approved: bool = True,
    max_approved_cents: Optional[int] = None,
    email: Optional[str] = "customer@example.com",
) -> CustomerFinancingProfile:
    profile = CustomerFinancingProfile(customer_id=customer_id, email=email)
    if approved:
        profile.approve(approved_by="admin", max_approved_cents=max_approved_cents)
    return profile


def stripe_event(event_type: str, obj: Dict[str, Any], event_id: str) -> Dict[str, Any]:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": 1735732800,
        "data": {"object": obj},
    }


def subscription_created(billing_ref: str, event_id: str) -> Dict[str, Any]:
    return stripe_event(
        "customer.subscription.created",
        {
            "id": f"sub_{event_id}",
            "object": "subscription",
            "status": "trialing",
            "metadata": {"billing_ref": billing_ref},
        },
        event_id,
    )


def invoice_paid(
    billing_ref: str,
    event_id: str,
    payment_intent: str,
    amount_paid: int = 10000,
) -> Dict[str, Any]:
    return stripe_event(
        "invoice.payment_succeeded",
        {
            "id": f"in_{event_id}",
            "object": "invoice",
            "amount_paid": amount_paid,
            "payment_intent": payment_intent,
            "subscription_details": {"metadata": {"billing_ref": billing_ref}},
        },
        event_id,
    )


def invoice_failed(billing_ref: str, event_id: str, code: str = "card_declined") -> Dict[str, Any]:
    return stripe_event(
        "invoice.payment_failed",
        {
            "id": f"in_{event_id}",
            "object": "invoice",
            "amount_paid": 0,
            "payment_intent": {"id": f"pi_{event_id}", "last_payment_error": {"code": code}},
            "subscription_details": {"metadata": {"billing_ref": billing_ref}},
        },
        event_id,
    )


def at(day: int) -> datetime:
    return datetime(2025, 1, day, 12, 0, 0)
