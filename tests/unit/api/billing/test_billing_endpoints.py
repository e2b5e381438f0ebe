"""Billing endpoints tests."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import status
from httpx import AsyncClient
from pydantic import SecretStr
from sqlalchemy.exc import OperationalError

from storefront.api.core.messages import MessageCode
from storefront.database.models import SubscriptionStatus
from storefront.modules.billing.primer import PrimerGatewayClient
from storefront.modules.billing.run_lock import BillingRunLock
from storefront.modules.billing.store import SubscriptionStore
from storefront.modules.billing.webhook import utc_today

PROCESS_URL = "/billing/process"
CRON_SECRET = "cron-secret-value"


def _reactivate_url(subscription_id) -> str:
    return f"/billing/subscriptions/{subscription_id}/reactivate"


@pytest.fixture
def require_cron_secret(app, billing_settings):
    app.state.billing_settings = billing_settings.model_copy(
        update={"BILLING_CRON_SECRET": SecretStr(CRON_SECRET)}
    )


class TestProcessBilling:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "POST"])
    async def test_charges_due_subscriptions(
        self, app, public_client: AsyncClient, db_session, subscription_factory, method
    ):
        due = await subscription_factory.create_async(
            db_session, next_billing_date=utc_today() - timedelta(days=1)
        )
        await subscription_factory.create_async(
            db_session, next_billing_date=utc_today() + timedelta(days=5)
        )

        response = await public_client.request(method, PROCESS_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message_code"] == MessageCode.BILLING_RUN_COMPLETED
        assert data["message"] == (
            "Billing process completed. Processed 1 subscriptions."
        )
        assert data["data"]["stats"] == {
            "totalProcessed": 1,
            "successfulCharges": 1,
            "failedCharges": 0,
            "skipped": 0,
            "errors": [],
        }
        assert data["data"]["results"][0]["subscriptionId"] == str(due.subscription_id)
        assert data["data"]["results"][0]["paymentId"] == "pay_test_123"

        stored = await SubscriptionStore(db_session).get(due.subscription_id)
        assert stored.next_billing_date == utc_today() + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_nothing_due(self, app, public_client: AsyncClient):
        response = await public_client.post(PROCESS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["stats"]["totalProcessed"] == 0

    @pytest.mark.asyncio
    async def test_charge_failures_still_answer_200(
        self, app, public_client: AsyncClient, db_session, gateway, subscription_factory
    ):
        await subscription_factory.create_async(
            db_session, next_billing_date=utc_today()
        )
        gateway.charge.side_effect = Exception("boom")

        response = await public_client.post(PROCESS_URL)

        assert response.status_code == status.HTTP_200_OK
        stats = response.json()["data"]["stats"]
        assert stats["failedCharges"] == 1
        assert len(stats["errors"]) == 1

    @pytest.mark.asyncio
    async def test_unconfigured_gateway(self, app, public_client: AsyncClient):
        app.state.gateway = PrimerGatewayClient(api_key=None)

        response = await public_client.post(PROCESS_URL)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["message_code"] == MessageCode.CONFIGURATION_ERROR
        assert data["details"]["stats"]["totalProcessed"] == 0

    @pytest.mark.asyncio
    async def test_query_failure(self, app, public_client: AsyncClient):
        with patch.object(
            SubscriptionStore,
            "find_due",
            AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down"))),
        ):
            response = await public_client.post(PROCESS_URL)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["details"]["description"] == "Failed to query due subscriptions"
        assert data["details"]["stats"]["failedCharges"] == 0

    @pytest.mark.asyncio
    async def test_overlapping_run_conflicts(
        self, app, public_client: AsyncClient, gateway
    ):
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=False)
        redis_client = MagicMock()
        redis_client.lock.return_value = lock
        app.state.billing_run_lock = BillingRunLock(
            AsyncMock(return_value=redis_client), timeout_seconds=60
        )

        response = await public_client.post(PROCESS_URL)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["message_code"] == MessageCode.BILLING_RUN_IN_PROGRESS
        gateway.charge.assert_not_awaited()


class TestCronSecret:
    @pytest.mark.asyncio
    async def test_missing_secret_rejected(
        self, require_cron_secret, public_client: AsyncClient
    ):
        response = await public_client.post(PROCESS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message_code"] == MessageCode.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_wrong_secret_rejected(
        self, require_cron_secret, public_client: AsyncClient
    ):
        response = await public_client.post(
            PROCESS_URL, headers={"Authorization": "Bearer not-the-secret"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_correct_secret_accepted(
        self, require_cron_secret, public_client: AsyncClient
    ):
        response = await public_client.get(
            PROCESS_URL, headers={"Authorization": f"Bearer {CRON_SECRET}"}
        )

        assert response.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_reactivate_also_requires_secret(
        self, require_cron_secret, public_client: AsyncClient
    ):
        response = await public_client.post(_reactivate_url(uuid4()))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestReactivate:
    @pytest.mark.asyncio
    async def test_failed_subscription_reactivated(
        self, app, public_client: AsyncClient, db_session, subscription_factory
    ):
        due_date = utc_today() - timedelta(days=3)
        subscription = await subscription_factory.create_async(
            db_session,
            status=SubscriptionStatus.FAILED.value,
            next_billing_date=due_date,
        )

        response = await public_client.post(
            _reactivate_url(subscription.subscription_id)
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message_code"] == MessageCode.SUBSCRIPTION_REACTIVATED
        assert data["data"] == {
            "subscriptionId": str(subscription.subscription_id),
            "status": SubscriptionStatus.ACTIVE.value,
            "nextBillingDate": due_date.isoformat(),
        }

    @pytest.mark.asyncio
    async def test_active_subscription_conflicts(
        self, app, public_client: AsyncClient, db_session, subscription_factory
    ):
        subscription = await subscription_factory.create_async(db_session)

        response = await public_client.post(
            _reactivate_url(subscription.subscription_id)
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        data = response.json()
        assert data["message_code"] == MessageCode.SUBSCRIPTION_NOT_FAILED
        assert data["details"]["status"] == SubscriptionStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_stuck_charging_subscription_reactivated(
        self, app, public_client: AsyncClient, db_session, subscription_factory
    ):
        subscription = await subscription_factory.create_async(
            db_session, status=SubscriptionStatus.CHARGING.value
        )

        response = await public_client.post(
            _reactivate_url(subscription.subscription_id)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == SubscriptionStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_unknown_subscription_not_found(
        self, app, public_client: AsyncClient
    ):
        response = await public_client.post(_reactivate_url(uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message_code"] == MessageCode.SUBSCRIPTION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_invalid_id_rejected(self, app, public_client: AsyncClient):
        response = await public_client.post(_reactivate_url("not-a-uuid"))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
        assert response.json()["message_code"] == MessageCode.INVALID_INPUT
