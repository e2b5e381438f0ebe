"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"

    # Authentication
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    # Webhooks
    WEBHOOK_PROCESSED = "WEBHOOK_PROCESSED"
    WEBHOOK_IGNORED = "WEBHOOK_IGNORED"
    WEBHOOK_PROCESSING_FAILED = "WEBHOOK_PROCESSING_FAILED"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # Checkout
    CLIENT_SESSION_CREATED = "CLIENT_SESSION_CREATED"
    PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"

    # Billing
    BILLING_RUN_COMPLETED = "BILLING_RUN_COMPLETED"
    BILLING_RUN_IN_PROGRESS = "BILLING_RUN_IN_PROGRESS"
    SUBSCRIPTION_NOT_FOUND = "SUBSCRIPTION_NOT_FOUND"
    SUBSCRIPTION_NOT_FAILED = "SUBSCRIPTION_NOT_FAILED"
    SUBSCRIPTION_REACTIVATED = "SUBSCRIPTION_REACTIVATED"

    # Storefront
    PAGE_DATA_DEFAULT = "PAGE_DATA_DEFAULT"

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"

    # Generic errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    CONFLICT = "CONFLICT"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    # Authentication
    MessageCode.UNAUTHORIZED: "Authentication required",
    MessageCode.INVALID_SIGNATURE: "Invalid signature",
    # Webhooks
    MessageCode.WEBHOOK_PROCESSED: "Webhook processed successfully",
    MessageCode.WEBHOOK_IGNORED: "Webhook received",
    MessageCode.WEBHOOK_PROCESSING_FAILED: "Failed to process webhook",
    MessageCode.INVALID_PAYLOAD: "Invalid webhook payload",
    MessageCode.PAYLOAD_TOO_LARGE: "Payload too large",
    # Checkout
    MessageCode.CLIENT_SESSION_CREATED: "Client session created",
    MessageCode.PAYMENT_GATEWAY_ERROR: "Payment gateway request failed",
    # Billing
    MessageCode.BILLING_RUN_COMPLETED: "Billing process completed",
    MessageCode.BILLING_RUN_IN_PROGRESS: "A billing run is already in progress",
    MessageCode.SUBSCRIPTION_NOT_FOUND: "Subscription not found",
    MessageCode.SUBSCRIPTION_NOT_FAILED: (
        "Only failed or charging subscriptions can be reactivated"
    ),
    MessageCode.SUBSCRIPTION_REACTIVATED: "Subscription reactivated",
    # Storefront
    MessageCode.PAGE_DATA_DEFAULT: "No product configured for this domain",
    # Validation errors
    MessageCode.INVALID_INPUT: "Invalid input provided",
    # Generic errors
    MessageCode.CONFIGURATION_ERROR: "Service is not configured",
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
    MessageCode.METHOD_NOT_ALLOWED: "Method not allowed",
    MessageCode.CONFLICT: "Request conflicts with the current state",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
