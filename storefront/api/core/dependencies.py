import hmac
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.core.exceptions.base import StorefrontException
from storefront.api.core.messages import MessageCode
from storefront.modules.billing.primer import PrimerGatewayClient
from storefront.modules.billing.run_lock import BillingRunLock
from storefront.modules.billing.signature import WebhookSignatureVerifier
from storefront.utils.settings.app import AppSettings
from storefront.utils.settings.billing import BillingSettings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.app_settings


def get_billing_settings(request: Request) -> BillingSettings:
    return request.app.state.billing_settings


def get_gateway_client(request: Request) -> PrimerGatewayClient:
    return request.app.state.gateway


def get_signature_verifier(request: Request) -> WebhookSignatureVerifier:
    return request.app.state.signature_verifier


def get_billing_run_lock(request: Request) -> BillingRunLock:
    return request.app.state.billing_run_lock


def verify_cron_secret(
    request: Request,
    settings: Annotated[BillingSettings, Depends(get_billing_settings)],
) -> None:
    """Require ``Authorization: Bearer <BILLING_CRON_SECRET>`` when a secret is set."""
    if settings.BILLING_CRON_SECRET is None:
        return

    expected = f"Bearer {settings.BILLING_CRON_SECRET.get_secret_value()}"
    provided = request.headers.get("authorization", "")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise StorefrontException(
            MessageCode.UNAUTHORIZED,
            status.HTTP_401_UNAUTHORIZED,
            details={"description": "Invalid or missing cron secret"},
        )


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
AppSettingsDep = Annotated[AppSettings, Depends(get_app_settings)]
BillingSettingsDep = Annotated[BillingSettings, Depends(get_billing_settings)]
GatewayClientDep = Annotated[PrimerGatewayClient, Depends(get_gateway_client)]
SignatureVerifierDep = Annotated[
    WebhookSignatureVerifier, Depends(get_signature_verifier)
]
BillingRunLockDep = Annotated[BillingRunLock, Depends(get_billing_run_lock)]
CronAuthDep = Depends(verify_cron_secret)
