"""Database models for the storefront API."""

from .base import Base
from .catalog import DomainMapping, Product
from .subscriptions import (
    BILLABLE_STATUSES,
    REACTIVATABLE_STATUSES,
    Subscription,
    SubscriptionStatus,
)

__all__ = [
    # Base
    "Base",
    # Enums
    "SubscriptionStatus",
    "BILLABLE_STATUSES",
    "REACTIVATABLE_STATUSES",
    # Models
    "Subscription",
    "Product",
    "DomainMapping",
]
