"""Subscription billing settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BillingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    BILLING_CURRENCY: str = "USD"

    # Amounts are in minor units (cents). Used when a product has no pricing.
    DEFAULT_RECURRING_AMOUNT: int = 499
    DEFAULT_INITIAL_AMOUNT: int = 499
    DEFAULT_BILLING_INTERVAL_DAYS: int = 30

    BILLING_WORKFLOW: str = "production"

    # Shared secret expected from the scheduler as a bearer token
    BILLING_CRON_SECRET: SecretStr | None = None

    BILLING_RUN_LOCK_ENABLED: bool = True
    BILLING_RUN_LOCK_TIMEOUT_SECONDS: int = 15 * 60

    # Off by default: a replayed PAYMENT.SUCCESS event creates a second record
    WEBHOOK_DEDUPLICATE_PAYMENTS: bool = False
    WEBHOOK_MAX_PAYLOAD_BYTES: int = 1024 * 1024
