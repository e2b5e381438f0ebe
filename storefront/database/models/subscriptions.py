"""Recurring subscription model."""

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import Date, DateTime, Index, Integer, String, UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class SubscriptionStatus(str, Enum):
    PENDING_INITIAL = "pending_initial"
    ACTIVE = "active"
    # Claimed by a billing run while its charge is in flight
    CHARGING = "charging"
    FAILED = "failed"


BILLABLE_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.PENDING_INITIAL)
# charging is included for runs that died mid-charge
REACTIVATABLE_STATUSES = (SubscriptionStatus.FAILED, SubscriptionStatus.CHARGING)


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_status_next_billing_date", "status", "next_billing_date"),
    )

    subscription_id: Mapped[uuid.UUID] = mapped_column(
        UUID, primary_key=True, default=uuid.uuid4
    )
    customer_email: Mapped[str] = mapped_column(String, nullable=False)
    product_identifier: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    next_billing_date: Mapped[date] = mapped_column(Date, nullable=False)
    primer_payment_method_token: Mapped[str] = mapped_column(String, nullable=False)

    # Pricing snapshot taken when the subscription was created
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    billing_interval_days: Mapped[int] = mapped_column(Integer, nullable=False)

    source_payment_id: Mapped[str | None] = mapped_column(String, nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(
        String, unique=True, nullable=True
    )

    last_charge_id: Mapped[str | None] = mapped_column(String, nullable=True)
    last_charge_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_failure_reason: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
