"""Scheduled charging of due subscriptions."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any
from uuid import UUID, uuid4

from storefront.database.models import SubscriptionStatus
from storefront.modules.billing.exceptions import ConfigurationError, PaymentGatewayError
from storefront.modules.billing.primer import PrimerGatewayClient
from storefront.modules.billing.store import BillingCandidate, SubscriptionStore
from storefront.modules.billing.webhook import utc_today
from storefront.utils.logger import get_logger, mask_value
from storefront.utils.settings.billing import BillingSettings

logger = get_logger(__name__)

RECURRING_BILLING_TYPE = "recurring"


@dataclass
class BillingResult:
    subscription_id: UUID
    success: bool
    error: str | None = None
    payment_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "subscriptionId": str(self.subscription_id),
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.payment_id is not None:
            data["paymentId"] = self.payment_id
        return data


@dataclass
class BillingRunSummary:
    total_processed: int = 0
    successful_charges: int = 0
    failed_charges: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    results: list[BillingResult] = field(default_factory=list)

    def record_success(self, subscription_id: UUID, payment_id: str | None) -> None:
        self.successful_charges += 1
        self.results.append(
            BillingResult(subscription_id, success=True, payment_id=payment_id)
        )

    def record_failure(self, subscription_id: UUID, error: str) -> None:
        self.failed_charges += 1
        self.errors.append(f"Subscription {subscription_id}: {error}")
        self.results.append(BillingResult(subscription_id, success=False, error=error))

    def stats(self) -> dict[str, Any]:
        return {
            "totalProcessed": self.total_processed,
            "successfulCharges": self.successful_charges,
            "failedCharges": self.failed_charges,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


class BillingCycleProcessor:
    """Charges every due subscription once, one at a time.

    A run never aborts on a single subscription's failure and never rolls
    back progress already made. Each subscription is claimed (moved to
    ``charging``) before the gateway is called, so overlapping runs cannot
    charge it twice.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        gateway: PrimerGatewayClient,
        settings: BillingSettings,
    ):
        self.store = store
        self.gateway = gateway
        self.settings = settings

    async def run(self, today: date | None = None) -> BillingRunSummary:
        if not self.gateway.is_configured:
            logger.error("Primer API key is not configured, aborting billing run")
            raise ConfigurationError("Primer API key is not configured")

        today = today or utc_today()
        due = await self.store.find_due(today)
        summary = BillingRunSummary(total_processed=len(due))

        logger.info(
            f"Found {len(due)} subscriptions due for billing",
            billing_date=today.isoformat(),
        )

        for candidate in due:
            await self._process(candidate, today, summary)

        logger.info(
            "Billing run completed",
            total_processed=summary.total_processed,
            successful_charges=summary.successful_charges,
            failed_charges=summary.failed_charges,
            skipped=summary.skipped,
        )
        return summary

    async def _process(
        self, candidate: BillingCandidate, today: date, summary: BillingRunSummary
    ) -> None:
        subscription_id = candidate.subscription_id
        log = logger.bind(subscription_id=str(subscription_id))

        try:
            claimed = await self.store.claim(subscription_id)
        except Exception as e:
            log.error(f"Failed to claim subscription: {e!r}")
            summary.record_failure(subscription_id, str(e))
            return

        if not claimed:
            log.info("Subscription already claimed by another run, skipping")
            summary.skipped += 1
            return

        try:
            if not candidate.payment_method_token:
                raise PaymentGatewayError("Subscription has no payment method token")

            order_id = f"sub-{uuid4()}"
            log.info(
                "Charging subscription",
                order_id=order_id,
                amount=candidate.amount,
                currency=candidate.currency,
                payment_method_token=mask_value(
                    candidate.payment_method_token, visible=5
                ),
            )

            response = await self.gateway.charge(
                order_id=order_id,
                amount=candidate.amount,
                currency=candidate.currency,
                payment_method_token=candidate.payment_method_token,
                customer_email=candidate.customer_email,
                metadata={
                    "subscriptionId": str(subscription_id),
                    "billingType": RECURRING_BILLING_TYPE,
                    "workflow": self.settings.BILLING_WORKFLOW,
                },
            )
            if response.is_declined:
                raise PaymentGatewayError(
                    f"Payment {response.status}: {response.id or 'no payment id'}"
                )

        except PaymentGatewayError as e:
            log.warning(f"Charge failed: {e}")
            await self._mark_failed(candidate, str(e))
            summary.record_failure(subscription_id, str(e))
            return

        except Exception as e:
            log.error(f"Unexpected error while charging subscription: {e!r}")
            await self._mark_failed(candidate, str(e) or repr(e))
            summary.record_failure(subscription_id, str(e) or repr(e))
            return

        next_billing_date = today + timedelta(days=candidate.billing_interval_days)
        try:
            await self.store.mark_charged(
                subscription_id, next_billing_date, charge_id=response.id
            )
        except Exception as e:
            # The charge went through; the record is now behind the gateway
            log.error(
                f"Charge succeeded but subscription update failed: {e!r}",
                payment_id=response.id,
            )
            # Releasing would let the next run charge again
            await self._mark_failed(
                candidate, f"Post-charge update failed: {e}", release_on_error=False
            )
            summary.record_failure(subscription_id, str(e) or repr(e))
            return

        log.info(
            "Subscription charged",
            payment_id=response.id,
            next_billing_date=next_billing_date.isoformat(),
        )
        summary.record_success(subscription_id, response.id)

    async def _mark_failed(
        self,
        candidate: BillingCandidate,
        reason: str,
        release_on_error: bool = True,
    ) -> None:
        """Record a failed charge.

        If the failure cannot be recorded, the claim is released instead so
        the subscription stays due rather than stuck in ``charging``.
        """
        subscription_id = candidate.subscription_id
        try:
            await self.store.mark_failed(subscription_id, reason)
            return
        except Exception as e:
            logger.error(
                f"Failed to mark subscription as failed: {e!r}",
                subscription_id=str(subscription_id),
            )

        if not release_on_error:
            logger.error(
                "Subscription left in charging, reactivate it once reconciled",
                subscription_id=str(subscription_id),
            )
            return

        try:
            released = await self.store.release(
                subscription_id, SubscriptionStatus(candidate.status)
            )
        except Exception as e:
            logger.error(
                f"Failed to release subscription claim: {e!r}",
                subscription_id=str(subscription_id),
            )
            return

        if released:
            logger.warning(
                "Released subscription claim after failed charge",
                subscription_id=str(subscription_id),
                status=candidate.status,
            )
