"""Checkout client-session endpoint tests."""

import pytest
from fastapi import status
from httpx import AsyncClient

from storefront.api.core.messages import MessageCode
from storefront.modules.billing.exceptions import (
    GatewayConnectionError,
    PaymentGatewayError,
)
from storefront.modules.billing.primer import PrimerGatewayClient

CLIENT_SESSION_URL = "/primer/client-session"


@pytest.mark.asyncio
async def test_returns_client_token(app, public_client: AsyncClient, gateway):
    response = await public_client.post(
        CLIENT_SESSION_URL, json={"customerEmail": "buyer@example.com"}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["message_code"] == MessageCode.CLIENT_SESSION_CREATED
    assert data["data"] == {"clientToken": "client_token_test"}
    kwargs = gateway.create_client_session.await_args.kwargs
    assert kwargs["customer_email"] == "buyer@example.com"


@pytest.mark.asyncio
async def test_product_resolved_from_request_host(
    app,
    public_client: AsyncClient,
    db_session,
    gateway,
    product_factory,
    domain_mapping_factory,
):
    await product_factory.create_async(db_session, product_identifier="felix-gummies")
    await domain_mapping_factory.create_async(
        db_session, domain_name="test-storefront", product_identifier="felix-gummies"
    )

    response = await public_client.post(CLIENT_SESSION_URL)

    assert response.status_code == status.HTTP_200_OK
    kwargs = gateway.create_client_session.await_args.kwargs
    assert kwargs["metadata"]["product_id"] == "felix-gummies"


@pytest.mark.asyncio
async def test_email_header_used_without_body(app, public_client: AsyncClient, gateway):
    response = await public_client.post(
        CLIENT_SESSION_URL, headers={"x-customer-email": "header@example.com"}
    )

    assert response.status_code == status.HTTP_200_OK
    kwargs = gateway.create_client_session.await_args.kwargs
    assert kwargs["customer_email"] == "header@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        PaymentGatewayError("Payment failed: Invalid currency", status_code=400),
        GatewayConnectionError("Primer API unavailable"),
    ],
)
async def test_gateway_failure_is_bad_gateway(
    app, public_client: AsyncClient, gateway, error
):
    gateway.create_client_session.side_effect = error

    response = await public_client.post(CLIENT_SESSION_URL)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["message_code"] == MessageCode.PAYMENT_GATEWAY_ERROR


@pytest.mark.asyncio
async def test_unconfigured_gateway_is_a_server_error(app, public_client: AsyncClient):
    app.state.gateway = PrimerGatewayClient(api_key=None)

    response = await public_client.post(CLIENT_SESSION_URL)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["message_code"] == MessageCode.CONFIGURATION_ERROR
