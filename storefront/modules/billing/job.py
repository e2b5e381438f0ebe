"""Command-line entry point for a scheduled billing run.

Example:
  storefront-billing-run
  storefront-billing-run --date 2026-03-01
"""

import argparse
import asyncio
import json
import sys
from datetime import date

from storefront.database.connection import AsyncSessionLocal, async_engine
from storefront.modules.billing.exceptions import (
    BillingRunInProgressError,
    ConfigurationError,
)
from storefront.modules.billing.primer import PrimerGatewayClient
from storefront.modules.billing.processor import BillingCycleProcessor, BillingRunSummary
from storefront.modules.billing.run_lock import BillingRunLock
from storefront.modules.billing.store import SubscriptionStore
from storefront.redis.client import close_redis_pool, get_redis_client
from storefront.utils.logger import get_logger, setup_logging
from storefront.utils.settings.app import AppSettings
from storefront.utils.settings.billing import BillingSettings
from storefront.utils.settings.primer import PrimerSettings

logger = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Charge every subscription due for billing."
    )
    parser.add_argument(
        "--date",
        dest="billing_date",
        type=date.fromisoformat,
        default=None,
        help="Billing date (YYYY-MM-DD). Defaults to today in UTC.",
    )
    return parser.parse_args(argv)


async def run_billing(billing_date: date | None = None) -> BillingRunSummary:
    billing_settings = BillingSettings()
    gateway = PrimerGatewayClient.from_settings(PrimerSettings())
    run_lock = BillingRunLock(
        get_redis_client,
        timeout_seconds=billing_settings.BILLING_RUN_LOCK_TIMEOUT_SECONDS,
        enabled=billing_settings.BILLING_RUN_LOCK_ENABLED,
    )

    try:
        async with run_lock.hold():
            async with AsyncSessionLocal() as session:
                processor = BillingCycleProcessor(
                    SubscriptionStore(session), gateway, billing_settings
                )
                return await processor.run(billing_date)
    finally:
        await close_redis_pool()
        await async_engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(AppSettings().is_production)

    try:
        summary = asyncio.run(run_billing(args.billing_date))
    except BillingRunInProgressError as e:
        logger.warning(str(e))
        return 2
    except ConfigurationError as e:
        logger.error(f"Billing run aborted: {e}")
        return 1

    print(
        json.dumps(
            {
                "stats": summary.stats(),
                "results": [result.to_dict() for result in summary.results],
            },
            indent=2,
        )
    )
    return 1 if summary.failed_charges else 0


if __name__ == "__main__":
    sys.exit(main())
