"""Scheduled billing trigger and manual subscription recovery."""

from uuid import UUID

from fastapi import APIRouter, Path, status

from storefront.api.billing.schemas import (
    BillingRunModel,
    BillingStatsModel,
    SubscriptionStatusModel,
)
from storefront.api.core.dependencies import (
    AsyncSessionDep,
    BillingRunLockDep,
    BillingSettingsDep,
    CronAuthDep,
    GatewayClientDep,
)
from storefront.api.core.exceptions.base import StorefrontException
from storefront.api.core.messages import APIResponse, MessageCode
from storefront.database.models import REACTIVATABLE_STATUSES
from storefront.modules.billing.exceptions import (
    BillingRunInProgressError,
    ConfigurationError,
)
from storefront.modules.billing.processor import BillingCycleProcessor
from storefront.modules.billing.store import SubscriptionStore
from storefront.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"], dependencies=[CronAuthDep])


def _empty_stats() -> dict:
    return BillingStatsModel().model_dump(by_alias=True)


@router.api_route(
    "/process",
    methods=["GET", "POST"],
    response_model=APIResponse[BillingRunModel],
)
async def process_billing(
    db: AsyncSessionDep,
    gateway: GatewayClientDep,
    settings: BillingSettingsDep,
    run_lock: BillingRunLockDep,
) -> APIResponse[BillingRunModel]:
    """Charge every subscription that is due today."""
    if not gateway.is_configured:
        logger.error("Primer API key is not configured")
        raise StorefrontException(
            MessageCode.CONFIGURATION_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={
                "description": "Primer API key is not configured",
                "stats": _empty_stats(),
            },
        )

    processor = BillingCycleProcessor(SubscriptionStore(db), gateway, settings)
    try:
        async with run_lock.hold():
            summary = await processor.run()
    except BillingRunInProgressError:
        raise StorefrontException(
            MessageCode.BILLING_RUN_IN_PROGRESS, status.HTTP_409_CONFLICT
        )
    except ConfigurationError as e:
        raise StorefrontException(
            MessageCode.CONFIGURATION_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"description": str(e), "stats": _empty_stats()},
        )
    except Exception as e:
        logger.error(f"Billing run failed before processing: {e!r}")
        raise StorefrontException(
            MessageCode.INTERNAL_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={
                "description": "Failed to query due subscriptions",
                "stats": _empty_stats(),
            },
        )

    return APIResponse.success(
        MessageCode.BILLING_RUN_COMPLETED,
        message=f"Billing process completed. Processed {summary.total_processed} subscriptions.",
        data=BillingRunModel.from_summary(summary),
    )


@router.post(
    "/subscriptions/{subscription_id}/reactivate",
    response_model=APIResponse[SubscriptionStatusModel],
)
async def reactivate_subscription(
    db: AsyncSessionDep,
    subscription_id: UUID = Path(...),
) -> APIResponse[SubscriptionStatusModel]:
    """Return a failed or stuck ``charging`` subscription to ``active``."""
    store = SubscriptionStore(db)
    subscription = await store.get(subscription_id)
    if subscription is None:
        raise StorefrontException(
            MessageCode.SUBSCRIPTION_NOT_FOUND, status.HTTP_404_NOT_FOUND
        )

    if subscription.status not in {s.value for s in REACTIVATABLE_STATUSES}:
        raise StorefrontException(
            MessageCode.SUBSCRIPTION_NOT_FAILED,
            status.HTTP_409_CONFLICT,
            details={"status": subscription.status},
        )

    if not await store.reactivate(subscription_id):
        raise StorefrontException(
            MessageCode.SUBSCRIPTION_NOT_FAILED, status.HTTP_409_CONFLICT
        )

    subscription = await store.get(subscription_id)
    logger.info(
        "Subscription reactivated", subscription_id=str(subscription_id)
    )
    return APIResponse.success(
        MessageCode.SUBSCRIPTION_REACTIVATED,
        data=SubscriptionStatusModel(
            subscription_id=subscription.subscription_id,
            status=subscription.status,
            next_billing_date=subscription.next_billing_date,
        ),
    )
