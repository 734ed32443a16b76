"""
Unit tests for the Stripe billing gateway.

The Stripe SDK calls are replaced with fakes; these tests verify:
1. The Product/Price/Checkout Session sequence and its parameters
2. Retry with backoff on transient errors, none on definitive ones
3. Customer rejections surface as InvalidCustomerException
4. Webhook signature verification
"""

import hashlib
import hmac
import json
import time
from datetime import date, datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
import stripe

from financing_gateway.domain.entities import PaymentFrequency
from financing_gateway.domain.exceptions import (
    BillingGatewayException,
    GatewayUnavailableException,
    InvalidCustomerException,
    InvalidWebhookSignatureException,
)
from financing_gateway.infrastructure.clients import StripeBillingGateway

WEBHOOK_SECRET = "whsec_test"


class FakeStripe:
    """Records SDK calls; each method can be primed with errors to raise first."""

    def __init__(self, monkeypatch):
        self.calls = []
        self.errors = {}
        self.subscriptions = []

        monkeypatch.setattr(stripe.Product, "create", self._fake("product.create", self._product))
        monkeypatch.setattr(stripe.Price, "create", self._fake("price.create", self._price))
        monkeypatch.setattr(stripe.Price, "modify", self._fake("price.modify", self._echo))
        monkeypatch.setattr(
            stripe.checkout.Session, "create", self._fake("session.create", self._session)
        )
        monkeypatch.setattr(stripe.Subscription, "list", self._fake("subscription.list", self._list))
        monkeypatch.setattr(
            stripe.Subscription, "cancel", self._fake("subscription.cancel", self._echo)
        )

    def fail(self, name, *errors):
        self.errors[name] = list(errors)

    def called(self, name):
        return [kwargs for call, kwargs in self.calls if call == name]

    def _fake(self, name, result):
        def method(*args, **kwargs):
            self.calls.append((name, {"args": args, **kwargs}))
            pending = self.errors.get(name)
            if pending:
                raise pending.pop(0)
            return result(*args, **kwargs)

        return method

    @staticmethod
    def _product(**kwargs):
        return SimpleNamespace(id="prod_1")

    @staticmethod
    def _price(**kwargs):
        return SimpleNamespace(id="price_1")

    @staticmethod
    def _session(**kwargs):
        return SimpleNamespace(id="cs_1", url="https://checkout.stripe.test/cs_1")

    def _list(self, **kwargs):
        return SimpleNamespace(data=self.subscriptions)

    @staticmethod
    def _echo(*args, **kwargs):
        return SimpleNamespace(id=args[0] if args else None)


@pytest.fixture
def fake_stripe(monkeypatch) -> FakeStripe:
    return FakeStripe(monkeypatch)


@pytest.fixture
def gateway() -> StripeBillingGateway:
    return StripeBillingGateway(
        api_key="sk_test",
        webhook_secret=WEBHOOK_SECRET,
        currency="usd",
        timeout=5,
        max_retries=3,
        backoff_base=0,
    )


async def create(gateway, customer_ref="customer@example.com", plan_id=None):
    return await gateway.create_recurring_billing(
        customer_ref=customer_ref,
        installment_cents=10000,
        frequency=PaymentFrequency.BIWEEKLY,
        total_occurrences=4,
        first_charge_date=date(2025, 1, 15),
        plan_id=plan_id or uuid4(),
        product_label="Sofa",
    )


# =============================================================================
# Recurring Billing Creation Tests
# =============================================================================

class TestCreateRecurringBilling:
    @pytest.mark.asyncio
    async def test_returns_price_as_billing_reference(self, gateway, fake_stripe):
        billing = await create(gateway)

        assert billing.billing_ref == "price_1"
        assert billing.checkout_session_id == "cs_1"
        assert billing.checkout_url == "https://checkout.stripe.test/cs_1"

    @pytest.mark.asyncio
    async def test_price_recurs_at_plan_frequency(self, gateway, fake_stripe):
        await create(gateway)

        price = fake_stripe.called("price.create")[0]
        assert price["unit_amount"] == 10000
        assert price["currency"] == "usd"
        assert price["recurring"] == {"interval": "week", "interval_count": 2}
        assert price["product"] == "prod_1"

    @pytest.mark.asyncio
    async def test_checkout_trial_ends_on_first_due_date(self, gateway, fake_stripe):
        plan_id = uuid4()
        await create(gateway, plan_id=plan_id)

        session = fake_stripe.called("session.create")[0]
        expected = datetime(2025, 1, 15, tzinfo=timezone.utc).timestamp()
        assert session["mode"] == "subscription"
        assert session["subscription_data"]["trial_end"] == int(expected)
        assert session["subscription_data"]["metadata"]["billing_ref"] == "price_1"
        assert session["metadata"]["plan_id"] == str(plan_id)
        assert session["client_reference_id"] == str(plan_id)
        assert session["idempotency_key"] == f"{plan_id}:checkout"
        assert session["api_key"] == "sk_test"

    @pytest.mark.asyncio
    async def test_email_customer_ref(self, gateway, fake_stripe):
        await create(gateway, customer_ref="customer@example.com")

        session = fake_stripe.called("session.create")[0]
        assert session["customer_email"] == "customer@example.com"
        assert "customer" not in session

    @pytest.mark.asyncio
    async def test_stripe_customer_ref(self, gateway, fake_stripe):
        await create(gateway, customer_ref="cus_123")

        session = fake_stripe.called("session.create")[0]
        assert session["customer"] == "cus_123"
        assert "customer_email" not in session

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, gateway, fake_stripe):
        fake_stripe.fail("price.create", stripe.APIConnectionError("connection reset"))

        billing = await create(gateway)

        assert billing.billing_ref == "price_1"
        assert len(fake_stripe.called("price.create")) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, gateway, fake_stripe):
        fake_stripe.fail(
            "product.create",
            stripe.APIConnectionError("down"),
            stripe.RateLimitError("slow down"),
            stripe.APIConnectionError("down"),
        )

        with pytest.raises(GatewayUnavailableException) as exc_info:
            await create(gateway)

        assert exc_info.value.attempts == 3
        assert len(fake_stripe.called("product.create")) == 3
        assert fake_stripe.called("session.create") == []

    @pytest.mark.asyncio
    async def test_single_attempt_when_max_retries_is_one(self, fake_stripe):
        gateway = StripeBillingGateway(api_key="sk_test", max_retries=1, backoff_base=0)
        fake_stripe.fail("product.create", stripe.APIConnectionError("down"))

        with pytest.raises(GatewayUnavailableException) as exc_info:
            await create(gateway)

        assert exc_info.value.attempts == 1
        assert len(fake_stripe.called("product.create")) == 1

    @pytest.mark.asyncio
    async def test_explicit_timeout_applies(self, fake_stripe, monkeypatch):
        def slow_product(**kwargs):
            time.sleep(0.2)
            return SimpleNamespace(id="prod_1")

        monkeypatch.setattr(stripe.Product, "create", slow_product)
        gateway = StripeBillingGateway(
            api_key="sk_test", timeout=0.01, max_retries=1, backoff_base=0
        )

        with pytest.raises(GatewayUnavailableException):
            await create(gateway)

    @pytest.mark.parametrize("overrides", [{"max_retries": 0}, {"timeout": 0}])
    def test_unusable_limits_rejected(self, overrides):
        with pytest.raises(ValueError):
            StripeBillingGateway(api_key="sk_test", **overrides)

    @pytest.mark.asyncio
    async def test_definitive_error_not_retried(self, gateway, fake_stripe):
        fake_stripe.fail("price.create", stripe.InvalidRequestError("bad currency", "currency"))

        with pytest.raises(BillingGatewayException) as exc_info:
            await create(gateway)

        assert not isinstance(exc_info.value, GatewayUnavailableException)
        assert len(fake_stripe.called("price.create")) == 1

    @pytest.mark.asyncio
    async def test_rejected_customer(self, gateway, fake_stripe):
        fake_stripe.fail("session.create", stripe.InvalidRequestError("No such customer", "customer"))

        with pytest.raises(InvalidCustomerException) as exc_info:
            await create(gateway, customer_ref="cus_gone")

        assert exc_info.value.customer_ref == "cus_gone"


# =============================================================================
# Cancellation Tests
# =============================================================================

class TestCancelRecurringBilling:
    @pytest.mark.asyncio
    async def test_cancels_live_subscriptions_and_deactivates_price(self, gateway, fake_stripe):
        fake_stripe.subscriptions = [
            SimpleNamespace(id="sub_1", status="active"),
            SimpleNamespace(id="sub_2", status="canceled"),
            SimpleNamespace(id="sub_3", status="past_due"),
        ]

        await gateway.cancel_recurring_billing("price_1")

        cancelled = [c["args"][0] for c in fake_stripe.called("subscription.cancel")]
        assert cancelled == ["sub_1", "sub_3"]
        assert fake_stripe.called("subscription.list")[0]["price"] == "price_1"
        modify = fake_stripe.called("price.modify")[0]
        assert modify["args"] == ("price_1",)
        assert modify["active"] is False

    @pytest.mark.asyncio
    async def test_cancellation_failure_raises(self, gateway, fake_stripe):
        fake_stripe.fail(
            "subscription.list",
            *[stripe.APIError("server error") for _ in range(3)],
        )

        with pytest.raises(BillingGatewayException):
            await gateway.cancel_recurring_billing("price_1")


# =============================================================================
# Webhook Verification Tests
# =============================================================================

def sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class TestParseWebhook:
    def test_valid_signature_decodes_event(self, gateway):
        payload = json.dumps({"id": "evt_1", "object": "event", "type": "invoice.paid"}).encode()

        event = gateway.parse_webhook(payload, sign(payload))

        assert event["id"] == "evt_1"
        assert event["type"] == "invoice.paid"

    def test_wrong_secret_rejected(self, gateway):
        payload = json.dumps({"id": "evt_1", "object": "event"}).encode()

        with pytest.raises(InvalidWebhookSignatureException):
            gateway.parse_webhook(payload, sign(payload, secret="whsec_other"))

    def test_missing_signature_rejected(self, gateway):
        with pytest.raises(InvalidWebhookSignatureException):
            gateway.parse_webhook(b"{}", None)

    def test_tampered_payload_rejected(self, gateway):
        payload = json.dumps({"id": "evt_1", "object": "event"}).encode()
        signature = sign(payload)

        with pytest.raises(InvalidWebhookSignatureException):
            gateway.parse_webhook(payload.replace(b"evt_1", b"evt_2"), signature)
