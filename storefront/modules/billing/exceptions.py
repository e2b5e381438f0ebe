"""Billing domain errors."""


class BillingError(Exception):
    """Base class for subscription billing errors."""


class ConfigurationError(BillingError):
    """A required secret or API key is not configured.

    This is a deployment fault, never a verification or payment outcome.
    """


class PaymentGatewayError(BillingError):
    """The payment processor rejected a request or answered with an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayConnectionError(BillingError):
    """The payment processor could not be reached or timed out."""


class WebhookPayloadError(BillingError):
    """A payment-success event is missing data required to create a subscription."""


class BillingRunInProgressError(BillingError):
    """Another billing run currently holds the run lock."""
