"""Ordered fallback lookups over loosely structured webhook payloads.

Primer payloads differ by account setup and API version, so every field
the billing core needs is described as a list of key paths tried in order.
The first path that resolves to a non-empty string wins.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from storefront.modules.billing.exceptions import WebhookPayloadError

KeyPath = tuple[str, ...]

PAYMENT_SUCCESS_EVENT = "PAYMENT.SUCCESS"

UNKNOWN_CUSTOMER_EMAIL = "unknown@example.com"
DEFAULT_PRODUCT_IDENTIFIER = "default-product"

EVENT_TYPE_PATHS: tuple[KeyPath, ...] = (("type",), ("eventType",))
EVENT_ID_PATHS: tuple[KeyPath, ...] = (("id",), ("eventId",))

PAYMENT_OBJECT_PATHS: tuple[KeyPath, ...] = (("data", "payment"), ("payment",))

PAYMENT_ID_PATHS: tuple[KeyPath, ...] = (("id",),)
ORDER_ID_PATHS: tuple[KeyPath, ...] = (("orderId",), ("order_id",))
PAYMENT_METHOD_TOKEN_PATHS: tuple[KeyPath, ...] = (
    ("paymentMethodToken",),
    ("payment_method_token",),
    ("paymentMethod", "paymentMethodToken"),
)
CUSTOMER_EMAIL_PATHS: tuple[KeyPath, ...] = (
    ("customer", "email"),
    ("customer", "emailAddress"),
    ("customerEmail",),
    ("billing_address", "email"),
)
PRODUCT_IDENTIFIER_PATHS: tuple[KeyPath, ...] = (
    ("metadata", "product_id"),
    ("metadata", "productId"),
    *ORDER_ID_PATHS,
)


def lookup(source: Any, path: KeyPath) -> Any:
    """Follow ``path`` through nested mappings, returning None on any miss."""
    current = source
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def first_string(source: Any, paths: Sequence[KeyPath]) -> str | None:
    for path in paths:
        value = lookup(source, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def first_mapping(source: Any, paths: Sequence[KeyPath]) -> Mapping | None:
    for path in paths:
        value = lookup(source, path)
        if isinstance(value, Mapping):
            return value
    return None


def get_event_type(event: Mapping) -> str | None:
    return first_string(event, EVENT_TYPE_PATHS)


def get_event_id(event: Mapping) -> str | None:
    return first_string(event, EVENT_ID_PATHS)


@dataclass(frozen=True)
class PaymentSuccessData:
    """Billing identity extracted from a payment-success event."""

    payment_method_token: str
    customer_email: str
    product_identifier: str
    payment_id: str | None = None
    order_id: str | None = None


def extract_payment_success(event: Mapping) -> PaymentSuccessData:
    """Extract the fields needed to open a subscription.

    Raises ``WebhookPayloadError`` when there is no payment object or no
    payment-method token; email and product fall back to placeholders.
    """
    payment = first_mapping(event, PAYMENT_OBJECT_PATHS)
    if payment is None:
        raise WebhookPayloadError("Payment data not found in webhook payload")

    token = first_string(payment, PAYMENT_METHOD_TOKEN_PATHS)
    if token is None:
        raise WebhookPayloadError(
            "Payment method token not found in webhook payload"
        )

    return PaymentSuccessData(
        payment_method_token=token,
        customer_email=first_string(payment, CUSTOMER_EMAIL_PATHS)
        or UNKNOWN_CUSTOMER_EMAIL,
        product_identifier=first_string(payment, PRODUCT_IDENTIFIER_PATHS)
        or DEFAULT_PRODUCT_IDENTIFIER,
        payment_id=first_string(payment, PAYMENT_ID_PATHS),
        order_id=first_string(payment, ORDER_ID_PATHS),
    )
