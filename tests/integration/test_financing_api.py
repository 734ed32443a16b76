"""
Integration tests for the customer-facing financing endpoints.

These tests verify:
1. GET /v1/financing/eligibility - eligibility with quoted templates
2. POST /v1/financing/plans - plan creation with recurring billing
3. GET /v1/financing/plans/{plan_id} - persisted plan and schedule
4. POST /v1/financing/plans/{plan_id}/cancel - customer cancellation
"""

from datetime import date, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient

from financing_gateway.domain.exceptions import (
    GatewayUnavailableException,
    InvalidCustomerException,
)


# =============================================================================
# Eligibility Tests
# =============================================================================

class TestEligibility:
    """Tests for GET /v1/financing/eligibility."""

    @pytest.mark.asyncio
    async def test_approved_customer_gets_quoted_templates(self, client: AsyncClient):
        response = await client.get(
            "/v1/financing/eligibility",
            params={"customer_id": "cust_approved", "amount_cents": 40000},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["eligible"] is True
        assert data["reason"] is None
        assert [t["template_id"] for t in data["templates"]] == ["4-biweekly", "3-monthly"]

        biweekly, monthly = data["templates"]
        assert biweekly["quote"]["installment_cents"] == 10000
        assert monthly["quote"]["down_payment_cents"] == 4000
        assert monthly["quote"]["processing_fee_cents"] == 800
        assert monthly["quote"]["financed_cents"] == 36800

    @pytest.mark.asyncio
    async def test_unknown_customer_not_eligible(self, client: AsyncClient):
        response = await client.get(
            "/v1/financing/eligibility",
            params={"customer_id": "stranger", "amount_cents": 40000},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["eligible"] is False
        assert data["reason"] == "Customer not approved for local financing"
        assert data["templates"] == []

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, client: AsyncClient):
        response = await client.get(
            "/v1/financing/eligibility",
            params={"customer_id": "cust_approved", "amount_cents": 0},
        )

        assert response.status_code == 422


class TestAvailableTemplates:
    """Tests for GET /v1/financing/templates."""

    @pytest.mark.asyncio
    async def test_templates_covering_amount(self, client: AsyncClient):
        response = await client.get("/v1/financing/templates", params={"amount_cents": 2000})

        assert response.status_code == 200
        assert [t["template_id"] for t in response.json()] == ["4-biweekly"]


# =============================================================================
# Plan Creation Tests
# =============================================================================

class TestCreatePlan:
    """Tests for POST /v1/financing/plans."""

    @pytest.mark.asyncio
    async def test_create_plan_returns_schedule_and_checkout(
        self,
        client: AsyncClient,
        plan_request: dict,
        billing_gateway,
    ):
        """$400 over 4 biweekly payments: 4 x $100, 14 days apart."""
        response = await client.post("/v1/financing/plans", json=plan_request)

        assert response.status_code == 201
        data = response.json()
        plan = data["plan"]

        assert plan["status"] == "pending"
        assert plan["customer_id"] == "cust_approved"
        assert plan["purchase_context_id"] == "registration_42"
        assert plan["financed_cents"] == 40000
        assert plan["remaining_cents"] == 40000
        assert [p["amount_cents"] for p in plan["payments"]] == [10000] * 4

        today = date.today()
        assert [p["due_date"] for p in plan["payments"]] == [
            (today + timedelta(days=14 * n)).isoformat() for n in range(1, 5)
        ]

        assert data["checkout"]["billing_ref"] == "price_test_1"
        assert data["checkout"]["checkout_url"].startswith("https://")
        assert plan["external_billing_ref"] == "price_test_1"
        assert len(billing_gateway.created) == 1

    @pytest.mark.asyncio
    async def test_ineligible_customer_forbidden(self, client: AsyncClient, plan_request: dict):
        plan_request["customer_id"] = "stranger"

        response = await client.post("/v1/financing/plans", json=plan_request)

        assert response.status_code == 403
        assert response.json()["error"] == "NOT_ELIGIBLE"

    @pytest.mark.asyncio
    async def test_duplicate_purchase_rejected(self, client: AsyncClient, plan_request: dict):
        first = await client.post("/v1/financing/plans", json=plan_request)
        second = await client.post("/v1/financing/plans", json=plan_request)

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["error"] == "INVALID_PLAN_REQUEST"

    @pytest.mark.asyncio
    async def test_unknown_template_not_found(self, client: AsyncClient, plan_request: dict):
        plan_request["template_id"] = "52-weekly"

        response = await client.post("/v1/financing/plans", json=plan_request)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_gateway_outage_returns_503_without_plan(
        self,
        client: AsyncClient,
        plan_request: dict,
        billing_gateway,
    ):
        billing_gateway.create_error = GatewayUnavailableException("create_recurring_billing", 3)

        response = await client.post("/v1/financing/plans", json=plan_request)

        assert response.status_code == 503
        assert response.json()["error"] == "BILLING_GATEWAY_UNAVAILABLE"

        plans = await client.get("/v1/financing/customers/cust_approved/plans")
        assert plans.json() == []

    @pytest.mark.asyncio
    async def test_rejected_customer_returns_422(
        self,
        client: AsyncClient,
        plan_request: dict,
        billing_gateway,
    ):
        billing_gateway.create_error = InvalidCustomerException("customer@example.com")

        response = await client.post("/v1/financing/plans", json=plan_request)

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_BILLING_CUSTOMER"

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, client: AsyncClient):
        response = await client.post("/v1/financing/plans", json={"customer_id": "cust_approved"})

        assert response.status_code == 422


# =============================================================================
# Plan Retrieval and Cancellation Tests
# =============================================================================

class TestPlanRetrieval:
    """Tests for GET /v1/financing/plans/{plan_id}."""

    @pytest.mark.asyncio
    async def test_plan_round_trips_through_database(self, client: AsyncClient, plan_request: dict):
        created = (await client.post("/v1/financing/plans", json=plan_request)).json()["plan"]

        response = await client.get(f"/v1/financing/plans/{created['plan_id']}")

        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.asyncio
    async def test_unknown_plan_not_found(self, client: AsyncClient):
        response = await client.get(f"/v1/financing/plans/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "PLAN_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_invalid_plan_id_rejected(self, client: AsyncClient):
        response = await client.get("/v1/financing/plans/not-a-uuid")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_customer_plans_listed(self, client: AsyncClient, plan_request: dict):
        await client.post("/v1/financing/plans", json=plan_request)
        plan_request["purchase_context_id"] = "registration_43"
        await client.post("/v1/financing/plans", json=plan_request)

        response = await client.get("/v1/financing/customers/cust_approved/plans")

        assert response.status_code == 200
        assert len(response.json()) == 2


class TestCancelPlan:
    """Tests for POST /v1/financing/plans/{plan_id}/cancel."""

    @pytest.mark.asyncio
    async def test_cancel_stops_billing(self, client: AsyncClient, plan_request: dict, billing_gateway):
        created = (await client.post("/v1/financing/plans", json=plan_request)).json()

        response = await client.post(
            f"/v1/financing/plans/{created['plan']['plan_id']}/cancel",
            json={"reason": "changed my mind", "actor": "cust_approved"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "cancelled"
        assert data["cancel_reason"] == "Cancelled by cust_approved: changed my mind"
        assert billing_gateway.cancelled == [created["checkout"]["billing_ref"]]

    @pytest.mark.asyncio
    async def test_cancel_twice_conflicts(self, client: AsyncClient, plan_request: dict):
        created = (await client.post("/v1/financing/plans", json=plan_request)).json()
        url = f"/v1/financing/plans/{created['plan']['plan_id']}/cancel"

        await client.post(url, json={"actor": "cust_approved"})
        response = await client.post(url, json={"actor": "cust_approved"})

        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_TRANSITION"


# =============================================================================
# Service Endpoint Tests
# =============================================================================

class TestHealth:
    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "ok"
