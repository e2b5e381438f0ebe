"""Primer checkout session and webhook endpoints."""

import json

from fastapi import APIRouter, Request, status

from storefront.api.core.dependencies import (
    AsyncSessionDep,
    BillingSettingsDep,
    GatewayClientDep,
    SignatureVerifierDep,
)
from storefront.api.core.exceptions.base import StorefrontException
from storefront.api.core.messages import APIResponse, MessageCode
from storefront.api.primer.schemas import (
    ClientSessionRequest,
    ClientSessionResponse,
    WebhookResultModel,
)
from storefront.modules.billing.checkout import CheckoutService
from storefront.modules.billing.exceptions import (
    ConfigurationError,
    GatewayConnectionError,
    PaymentGatewayError,
    WebhookPayloadError,
)
from storefront.modules.billing.webhook import PaymentWebhookService
from storefront.utils.logger import get_logger, get_request_hostname

logger = get_logger(__name__)

router = APIRouter(prefix="/primer", tags=["primer"])

# Checked in order; Primer has used each of these names
SIGNATURE_HEADERS = ("x-primer-signature", "primer-signature", "signature")

def get_signature_header(request: Request) -> str | None:
    for header in SIGNATURE_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return None

@router.post("/webhook", response_model=APIResponse[WebhookResultModel])
async def primer_webhook(
    request: Request,
    db: AsyncSessionDep,
    verifier: SignatureVerifierDep,
    settings: BillingSettingsDep,
) -> APIResponse[WebhookResultModel]:
    """Verify and process a Primer webhook delivery.

    Processing failures answer 500 so that Primer re-delivers the event.
    """
    payload = await request.body()

    if len(payload) > settings.WEBHOOK_MAX_PAYLOAD_BYTES:
        raise StorefrontException(
            MessageCode.PAYLOAD_TOO_LARGE,
            status.HTTP_413_CONTENT_TOO_LARGE,
            details={"description": "Webhook payload too large"},
        )

    signature = get_signature_header(request)
    try:
        is_valid = verifier.verify(payload, signature)
    except ConfigurationError as e:
        raise StorefrontException(
            MessageCode.CONFIGURATION_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"description": str(e)},
        )

    if not is_valid:
        logger.warning(
            "Invalid webhook signature", signature_present=signature is not None
        )
        raise StorefrontException(
            MessageCode.INVALID_SIGNATURE, status.HTTP_401_UNAUTHORIZED
        )

    if not payload:
        raise StorefrontException(
            MessageCode.INVALID_PAYLOAD,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Empty webhook payload"},
        )

    try:
        event = json.loads(payload)
    except ValueError as e:
        logger.error(f"Webhook body is not valid JSON: {e}")
        raise StorefrontException(
            MessageCode.INVALID_PAYLOAD,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Invalid JSON payload"},
        )

    if not isinstance(event, dict):
        raise StorefrontException(
            MessageCode.INVALID_PAYLOAD,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Webhook payload must be a JSON object"},
        )

    service = PaymentWebhookService(db, settings)
    try:
        outcome = await service.handle_event(event)
    except WebhookPayloadError as e:
        logger.error(f"Webhook payload rejected: {e}")
        raise StorefrontException(
            MessageCode.INVALID_PAYLOAD,
            status.HTTP_400_BAD_REQUEST,
            details={"description": str(e)},
        )
    except Exception as e:
        logger.error(f"Webhook processing error: {e!r}")
        raise StorefrontException(
            MessageCode.WEBHOOK_PROCESSING_FAILED,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"description": str(e) or type(e).__name__},
        )

    result = WebhookResultModel(
        event_type=outcome.event_type,
        processed=outcome.processed,
        subscription_id=outcome.subscription.subscription_id
        if outcome.subscription
        else None,
        created=outcome.created,
    )
    if not outcome.processed:
        return APIResponse.success(MessageCode.WEBHOOK_IGNORED, data=result)
    return APIResponse.success(MessageCode.WEBHOOK_PROCESSED, data=result)

@router.post("/client-session", response_model=APIResponse[ClientSessionResponse])
async def create_client_session(
    request: Request,
    db: AsyncSessionDep,
    gateway: GatewayClientDep,
    settings: BillingSettingsDep,
    payload: ClientSessionRequest | None = None,
) -> APIResponse[ClientSessionResponse]:
    """Create a Primer client session for the product served on this host."""
    if not gateway.is_configured:
        logger.error("Primer API key is not configured")
        raise StorefrontException(
            MessageCode.CONFIGURATION_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"description": "Primer API key is not configured"},
        )

    customer_email = (
        payload.customer_email if payload else None
    ) or request.headers.get("x-customer-email")

    service = CheckoutService(db, gateway, settings)
    try:
        client_token = await service.create_client_session(
            hostname=get_request_hostname(request),
            product_identifier=payload.product_identifier if payload else None,
            customer_email=customer_email,
        )
    except (PaymentGatewayError, GatewayConnectionError) as e:
        raise StorefrontException(
            MessageCode.PAYMENT_GATEWAY_ERROR,
            status.HTTP_502_BAD_GATEWAY,
            details={"description": str(e)},
        )

    return APIResponse.success(
        MessageCode.CLIENT_SESSION_CREATED,
        data=ClientSessionResponse(client_token=client_token),
    )
