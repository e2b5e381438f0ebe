"""Payment-success webhook ingestion."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Mapping

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.base import BaseService
from storefront.database.models import Subscription, SubscriptionStatus
from storefront.modules.billing.extraction import (
    PAYMENT_SUCCESS_EVENT,
    PaymentSuccessData,
    extract_payment_success,
    get_event_id,
    get_event_type,
)
from storefront.modules.billing.store import SubscriptionStore
from storefront.modules.catalog.service import ProductCatalogService
from storefront.utils.logger import mask_value
from storefront.utils.settings.billing import BillingSettings


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str | None
    processed: bool
    subscription: Subscription | None = None
    created: bool = False


class PaymentWebhookService(BaseService):
    """Turns verified payment-success events into subscriptions.

    Without de-duplication enabled, every delivery of a payment-success
    event creates a new subscription, including sender retries of an
    event that was already processed.
    """

    def __init__(self, db: AsyncSession, settings: BillingSettings):
        super().__init__(db)
        self.settings = settings
        self.store = SubscriptionStore(db)
        self.catalog = ProductCatalogService(db)

    async def handle_event(
        self, event: Mapping, today: date | None = None
    ) -> WebhookOutcome:
        event_type = get_event_type(event)

        self.logger.info(
            "Received webhook event",
            event_type=event_type,
            event_id=get_event_id(event),
        )

        if event_type != PAYMENT_SUCCESS_EVENT:
            self.logger.info(f"Ignoring webhook event type: {event_type}")
            return WebhookOutcome(event_type=event_type, processed=False)

        subscription, created = await self.process_payment_success(
            event, today=today
        )
        return WebhookOutcome(
            event_type=event_type,
            processed=True,
            subscription=subscription,
            created=created,
        )

    async def process_payment_success(
        self, event: Mapping, today: date | None = None
    ) -> tuple[Subscription, bool]:
        """Create the subscription for a payment-success event.

        Returns the subscription and whether it was newly inserted.
        """
        data = extract_payment_success(event)

        self.logger.info(
            "Extracted webhook data",
            payment_id=data.payment_id,
            order_id=data.order_id,
            customer_email=data.customer_email,
            product_identifier=data.product_identifier,
            payment_method_token=mask_value(data.payment_method_token, visible=5),
        )

        idempotency_key = self._idempotency_key(data)
        if idempotency_key:
            existing = await self.store.find_by_idempotency_key(idempotency_key)
            if existing:
                self.logger.info(
                    "Payment already provisioned, skipping",
                    subscription_id=str(existing.subscription_id),
                    idempotency_key=idempotency_key,
                )
                return existing, False

        amount, interval_days = await self._pricing_snapshot(data.product_identifier)
        created_on = today or utc_today()

        try:
            subscription = await self.store.create(
                customer_email=data.customer_email,
                product_identifier=data.product_identifier,
                payment_method_token=data.payment_method_token,
                next_billing_date=created_on + timedelta(days=interval_days),
                amount=amount,
                currency=self.settings.BILLING_CURRENCY,
                billing_interval_days=interval_days,
                status=SubscriptionStatus.ACTIVE,
                source_payment_id=data.payment_id,
                idempotency_key=idempotency_key,
            )
        except IntegrityError:
            # A concurrent delivery of the same event won the insert
            if idempotency_key:
                existing = await self.store.find_by_idempotency_key(idempotency_key)
                if existing:
                    return existing, False
            raise

        return subscription, True

    def _idempotency_key(self, data: PaymentSuccessData) -> str | None:
        if not self.settings.WEBHOOK_DEDUPLICATE_PAYMENTS:
            return None
        reference = data.payment_id or data.order_id
        return f"primer:payment:{reference}" if reference else None

    async def _pricing_snapshot(self, product_identifier: str) -> tuple[int, int]:
        pricing = await self.catalog.get_pricing(product_identifier)
        if pricing is None:
            self.logger.info(
                "No pricing for product, using defaults",
                product_identifier=product_identifier,
            )
            return (
                self.settings.DEFAULT_RECURRING_AMOUNT,
                self.settings.DEFAULT_BILLING_INTERVAL_DAYS,
            )
        return pricing.recurring_amount, pricing.interval_days
