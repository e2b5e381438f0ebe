"""Client for the Primer payments API."""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from storefront.modules.billing.exceptions import (
    ConfigurationError,
    GatewayConnectionError,
    PaymentGatewayError,
)
from storefront.utils.logger import get_logger, mask_value
from storefront.utils.settings.primer import PrimerSettings

logger = get_logger(__name__)

CLIENT_SESSION_PATH = "/client-session"
PAYMENTS_PATH = "/payments"

MERCHANT_INITIATED = "MERCHANT_INITIATED"
FAILED_PAYMENT_STATUSES = frozenset({"DECLINED", "FAILED"})


@dataclass(frozen=True)
class LineItem:
    item_id: str
    name: str
    amount: int
    description: str = ""
    quantity: int = 1

    def to_payload(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "name": self.name,
            "description": self.description,
            "amount": self.amount,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class ChargeResponse:
    id: str | None
    status: str | None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_declined(self) -> bool:
        return (self.status or "").upper() in FAILED_PAYMENT_STATUSES


class PrimerGatewayClient:
    """Thin request/response wrapper around the Primer REST API."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.primer.io",
        api_version: str = "2.4",
        timeout: int = 30,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: PrimerSettings) -> "PrimerGatewayClient":
        return cls(
            api_key=settings.api_key,
            base_url=settings.PRIMER_API_BASE_URL,
            api_version=settings.PRIMER_API_VERSION,
            timeout=settings.PRIMER_REQUEST_TIMEOUT,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ConfigurationError("Primer API key is not configured")
        return {
            "Content-Type": "application/json",
            "X-Api-Key": self.api_key,
            "X-Api-Version": self.api_version,
        }

    async def create_client_session(
        self,
        order_id: str,
        amount: int,
        currency: str,
        line_items: list[LineItem],
        customer_email: str,
        metadata: dict[str, Any] | None = None,
        country_code: str = "US",
    ) -> str:
        """Create a checkout session and return its client token."""
        payload = {
            "orderId": order_id,
            "currencyCode": currency,
            "amount": amount,
            "order": {
                "countryCode": country_code,
                "lineItems": [item.to_payload() for item in line_items],
            },
            "customer": {"emailAddress": customer_email},
            "metadata": metadata or {},
        }

        data = await self._post(CLIENT_SESSION_PATH, payload)
        client_token = data.get("clientToken")
        if not client_token:
            logger.error("Primer response OK, but clientToken is missing")
            raise PaymentGatewayError("Client token missing in Primer API response")
        return client_token

    async def charge(
        self,
        order_id: str,
        amount: int,
        currency: str,
        payment_method_token: str,
        customer_email: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChargeResponse:
        """Issue a merchant-initiated payment against a stored payment method."""
        payload: dict[str, Any] = {
            "orderId": order_id,
            "amount": amount,
            "currencyCode": currency,
            "paymentMethodToken": payment_method_token,
            "paymentType": MERCHANT_INITIATED,
            "metadata": metadata or {},
        }
        if customer_email:
            payload["customer"] = {"emailAddress": customer_email}

        data = await self._post(PAYMENTS_PATH, payload)
        return ChargeResponse(id=data.get("id"), status=data.get("status"), raw=data)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = self._headers()
        url = f"{self.base_url}{path}"

        logger.info(
            "Sending Primer request",
            url=url,
            order_id=payload.get("orderId"),
            api_key=mask_value(self.api_key),
        )

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    body = await response.text()
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Primer request failed: {e!r}", url=url)
            raise GatewayConnectionError(f"Primer API unavailable: {e!r}") from e

        try:
            data = json.loads(body) if body else None
        except ValueError:
            logger.error(
                "Failed to parse Primer API response as JSON",
                status=status,
                body=body[:500],
            )
            raise PaymentGatewayError(
                f"Failed to parse Primer API response: {body[:200]}",
                status_code=status,
            )

        if not isinstance(data, dict):
            logger.error("Unexpected Primer API response body", status=status)
            raise PaymentGatewayError(
                "Unexpected Primer API response body", status_code=status
            )

        if not 200 <= status < 300:
            message = data.get("message") or _error_description(data)
            logger.error(
                "Primer request rejected",
                status=status,
                order_id=payload.get("orderId"),
                error=message,
            )
            raise PaymentGatewayError(
                f"Payment failed: {message or 'Unknown error'}", status_code=status
            )

        return data


def _error_description(data: dict[str, Any]) -> str | None:
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("description") or error.get("errorId")
    if isinstance(error, str):
        return error
    return None
