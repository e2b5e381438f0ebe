"""Global test configuration and fixtures for the storefront billing API."""

import hashlib
import hmac
import os
from collections.abc import AsyncGenerator
from typing import Callable
from unittest.mock import AsyncMock

# Must be set before storefront.database.connection is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.database.models import Base
from storefront.modules.billing.primer import ChargeResponse, PrimerGatewayClient
from storefront.modules.billing.run_lock import BillingRunLock
from storefront.modules.billing.signature import WebhookSignatureVerifier
from storefront.utils.settings.billing import BillingSettings

from tests.factories import (
    DomainMappingFactory,
    ProductFactory,
    SubscriptionFactory,
)

WEBHOOK_SECRET = "whsec_test_secret"
TEST_HOSTNAME = "test-storefront"


@pytest.fixture
def subscription_factory():
    return SubscriptionFactory


@pytest.fixture
def product_factory():
    return ProductFactory


@pytest.fixture
def domain_mapping_factory():
    return DomainMappingFactory


@pytest_asyncio.fixture
async def async_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite so every session gets its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        poolclass=pool.NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=async_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def billing_settings() -> BillingSettings:
    return BillingSettings(
        BILLING_CURRENCY="USD",
        DEFAULT_RECURRING_AMOUNT=499,
        DEFAULT_INITIAL_AMOUNT=499,
        DEFAULT_BILLING_INTERVAL_DAYS=30,
        BILLING_WORKFLOW="test",
        BILLING_CRON_SECRET=None,
        BILLING_RUN_LOCK_ENABLED=False,
        WEBHOOK_DEDUPLICATE_PAYMENTS=False,
    )


@pytest.fixture
def gateway() -> PrimerGatewayClient:
    """Gateway client with its network calls replaced by mocks."""
    client = PrimerGatewayClient(
        api_key="primer_test_key", base_url="http://primer.invalid"
    )
    client.charge = AsyncMock(
        return_value=ChargeResponse(id="pay_test_123", status="SETTLED")
    )
    client.create_client_session = AsyncMock(return_value="client_token_test")
    return client


@pytest.fixture
def signature_verifier() -> WebhookSignatureVerifier:
    return WebhookSignatureVerifier(WEBHOOK_SECRET)


@pytest.fixture
def sign_payload() -> Callable[[bytes], str]:
    def _sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
        return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()

    return _sign


@pytest.fixture
def billing_run_lock() -> BillingRunLock:
    return BillingRunLock(AsyncMock(), timeout_seconds=60, enabled=False)


@pytest_asyncio.fixture
async def app(
    session_factory,
    billing_settings,
    gateway,
    signature_verifier,
    billing_run_lock,
) -> AsyncGenerator[FastAPI, None]:
    """FastAPI application with test collaborators on app.state."""
    from storefront.main import app

    async with LifespanManager(app):
        app.state.session_factory = session_factory
        app.state.billing_settings = billing_settings
        app.state.gateway = gateway
        app.state.signature_verifier = signature_verifier
        app.state.billing_run_lock = billing_run_lock
        yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=f"http://{TEST_HOSTNAME}",
    ) as client:
        yield client
