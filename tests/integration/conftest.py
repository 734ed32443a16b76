"""
Fixtures for integration tests.

Provides:
- Test client for FastAPI app
- Fake billing gateway recording processor calls
- In-memory database for testing
- Seeded financing catalog and approved customer
"""

import json
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from financing_gateway.main import app
from financing_gateway.core.dependencies import get_billing_gateway, get_plan_locks
from financing_gateway.core.locks import KeyedLockRegistry
from financing_gateway.domain.entities import PaymentFrequency
from financing_gateway.infrastructure.database import Base, get_db_session
from financing_gateway.infrastructure.repositories import (
    PostgresProfileRepository,
    PostgresTemplateRepository,
)
from tests.support import VALID_SIGNATURE, FakeBillingGateway, make_profile, make_template


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_session(test_session: AsyncSession) -> AsyncSession:
    """
    Session with a catalog and one approved customer.

    - 4-biweekly: 4 payments, $10 - $5,000, no down payment or fee
    - 3-monthly: 3 payments, $50 - $5,000, 10% down, 2% fee
    - cust_approved: approved, contact by email
    """
    templates = PostgresTemplateRepository(test_session)
    await templates.save(make_template())
    await templates.save(
        make_template(
            "3-monthly",
            3,
            PaymentFrequency.MONTHLY,
            min_amount_cents=5000,
            down_payment_percent="10",
            processing_fee_percent="2",
            sort_order=2,
        )
    )

    profiles = PostgresProfileRepository(test_session)
    await profiles.upsert(make_profile("cust_approved"))

    await test_session.commit()
    return test_session


# =============================================================================
# Fake Client Fixtures
# =============================================================================

@pytest.fixture
def billing_gateway() -> FakeBillingGateway:
    """Create a billing gateway that records calls."""
    return FakeBillingGateway()


# =============================================================================
# App Client Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def client(
    seeded_session: AsyncSession,
    billing_gateway: FakeBillingGateway,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses an in-memory SQLite database shared by every request
    - Replaces Stripe with the recording fake gateway
    - Uses a fresh lock registry per test
    """
    locks = KeyedLockRegistry()

    async def override_get_db_session():
        yield seeded_session

    def override_get_billing_gateway():
        return billing_gateway

    def override_get_plan_locks():
        return locks

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_billing_gateway] = override_get_billing_gateway
    app.dependency_overrides[get_plan_locks] = override_get_plan_locks

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Helper Fixtures
# =============================================================================

@pytest.fixture
def plan_request() -> dict:
    """Request body for a $400 purchase over 4 biweekly payments."""
    return {
        "customer_id": "cust_approved",
        "template_id": "4-biweekly",
        "total_cents": 40000,
        "product_label": "Spring Workshop Registration",
        "purchase_context_id": "registration_42",
    }


@pytest.fixture
def deliver(client: AsyncClient):
    """Post a signed Stripe event to the webhook endpoint."""

    async def _deliver(event: dict, signature: str = VALID_SIGNATURE):
        return await client.post(
            "/v1/webhooks/billing",
            content=json.dumps(event),
            headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
        )

    return _deliver
