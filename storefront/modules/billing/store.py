"""Subscription persistence and billing state transitions."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import select, update

from storefront.core.base import BaseService
from storefront.database.models import (
    BILLABLE_STATUSES,
    REACTIVATABLE_STATUSES,
    Subscription,
    SubscriptionStatus,
)


@dataclass(frozen=True)
class BillingCandidate:
    """Immutable snapshot of a due subscription, detached from the session."""

    subscription_id: UUID
    customer_email: str
    product_identifier: str
    status: str
    next_billing_date: date
    payment_method_token: str | None
    amount: int
    currency: str
    billing_interval_days: int

    @classmethod
    def from_model(cls, subscription: Subscription) -> "BillingCandidate":
        return cls(
            subscription_id=subscription.subscription_id,
            customer_email=subscription.customer_email,
            product_identifier=subscription.product_identifier,
            status=subscription.status,
            next_billing_date=subscription.next_billing_date,
            payment_method_token=subscription.primer_payment_method_token,
            amount=subscription.amount,
            currency=subscription.currency,
            billing_interval_days=subscription.billing_interval_days,
        )


class SubscriptionStore(BaseService):
    """Reads and writes subscription records.

    Every write commits immediately so that one subscription's bookkeeping
    never depends on another's.
    """

    _billable = [status.value for status in BILLABLE_STATUSES]

    async def find_due(self, today: date) -> list[BillingCandidate]:
        """Subscriptions due on or before ``today``, oldest due first."""
        stmt = (
            select(Subscription)
            .where(
                Subscription.next_billing_date <= today,
                Subscription.status.in_(self._billable),
            )
            .order_by(
                Subscription.next_billing_date.asc(),
                Subscription.created_at.asc(),
            )
        )
        result = await self.db.execute(stmt)
        return [BillingCandidate.from_model(row) for row in result.scalars().all()]

    async def get(self, subscription_id: UUID) -> Subscription | None:
        return await self.db.get(
            Subscription, subscription_id, populate_existing=True
        )

    async def find_by_idempotency_key(self, key: str) -> Subscription | None:
        stmt = select(Subscription).where(Subscription.idempotency_key == key)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        customer_email: str,
        product_identifier: str,
        payment_method_token: str,
        next_billing_date: date,
        amount: int,
        currency: str,
        billing_interval_days: int,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        source_payment_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> Subscription:
        if status not in BILLABLE_STATUSES:
            raise ValueError(f"Subscriptions cannot be created as {status.value}")

        subscription = Subscription(
            subscription_id=uuid4(),
            customer_email=customer_email,
            product_identifier=product_identifier,
            status=status.value,
            next_billing_date=next_billing_date,
            primer_payment_method_token=payment_method_token,
            amount=amount,
            currency=currency,
            billing_interval_days=billing_interval_days,
            source_payment_id=source_payment_id,
            idempotency_key=idempotency_key,
        )
        self.db.add(subscription)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.logger.info(
            "Subscription created",
            subscription_id=str(subscription.subscription_id),
            product_identifier=product_identifier,
            next_billing_date=next_billing_date.isoformat(),
        )
        return subscription

    async def claim(self, subscription_id: UUID) -> bool:
        """Move a billable subscription to ``charging``.

        Conditional on the current status, so only one billing run can
        hold a given subscription at a time.
        """
        stmt = (
            update(Subscription)
            .where(
                Subscription.subscription_id == subscription_id,
                Subscription.status.in_(self._billable),
            )
            .values(
                status=SubscriptionStatus.CHARGING.value,
                last_charge_attempt_at=datetime.now(timezone.utc),
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        claimed = await self._execute_update(stmt)
        return claimed == 1

    async def mark_charged(
        self,
        subscription_id: UUID,
        next_billing_date: date,
        charge_id: str | None = None,
    ) -> None:
        await self._update_status(
            subscription_id,
            SubscriptionStatus.ACTIVE,
            next_billing_date=next_billing_date,
            last_charge_id=charge_id,
            last_failure_reason=None,
        )

    async def mark_failed(self, subscription_id: UUID, reason: str | None = None) -> None:
        # next_billing_date is left as is
        await self._update_status(
            subscription_id,
            SubscriptionStatus.FAILED,
            last_failure_reason=reason,
        )

    async def release(
        self,
        subscription_id: UUID,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    ) -> bool:
        """Undo a claim, moving a ``charging`` subscription back to ``status``."""
        if status not in BILLABLE_STATUSES:
            raise ValueError(f"Cannot release a subscription to {status.value}")

        stmt = (
            update(Subscription)
            .where(
                Subscription.subscription_id == subscription_id,
                Subscription.status == SubscriptionStatus.CHARGING.value,
            )
            .values(status=status.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return await self._execute_update(stmt) == 1

    async def reactivate(self, subscription_id: UUID) -> bool:
        """Return a ``failed`` or stuck ``charging`` subscription to ``active``.

        The billing date is kept, so the next run retries it.
        """
        stmt = (
            update(Subscription)
            .where(
                Subscription.subscription_id == subscription_id,
                Subscription.status.in_(
                    [status.value for status in REACTIVATABLE_STATUSES]
                ),
            )
            .values(
                status=SubscriptionStatus.ACTIVE.value,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return await self._execute_update(stmt) == 1

    async def _update_status(
        self,
        subscription_id: UUID,
        status: SubscriptionStatus,
        next_billing_date: date | None = None,
        **fields,
    ) -> None:
        values = {
            "status": status.value,
            "updated_at": datetime.now(timezone.utc),
            **fields,
        }
        if next_billing_date is not None:
            values["next_billing_date"] = next_billing_date

        self.logger.info(
            f"Updating subscription {subscription_id} status to '{status.value}'",
            next_billing_date=next_billing_date.isoformat()
            if next_billing_date
            else None,
        )

        stmt = (
            update(Subscription)
            .where(Subscription.subscription_id == subscription_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        updated = await self._execute_update(stmt)
        if updated != 1:
            raise LookupError(f"Subscription {subscription_id} not found")

    async def _execute_update(self, stmt) -> int:
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount
