"""Test factories for storefront models."""

from .base import AsyncSQLAlchemyModelFactory
from .catalog import DomainMappingFactory, ProductFactory
from .subscriptions import SubscriptionFactory

__all__ = [
    "AsyncSQLAlchemyModelFactory",
    "SubscriptionFactory",
    "ProductFactory",
    "DomainMappingFactory",
]
