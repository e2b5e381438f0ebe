import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.core.exceptions.base import register_exception_handlers
from storefront.api.core.middleware.logging import logging_middleware
from storefront.api.router import api_router
from storefront.database.connection import AsyncSessionLocal
from storefront.modules.billing.primer import PrimerGatewayClient
from storefront.modules.billing.run_lock import BillingRunLock
from storefront.modules.billing.signature import WebhookSignatureVerifier
from storefront.redis.client import close_redis_pool, get_redis_client
from storefront.utils.logger import mask_value, setup_logging
from storefront.utils.settings.app import AppSettings
from storefront.utils.settings.billing import BillingSettings
from storefront.utils.settings.primer import PrimerSettings

app_settings = AppSettings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger = setup_logging(app_settings.is_production)
    logger.info("Starting storefront API...")

    primer_settings = PrimerSettings()
    billing_settings = BillingSettings()

    app.state.app_settings = app_settings
    app.state.billing_settings = billing_settings
    app.state.session_factory = AsyncSessionLocal
    app.state.gateway = PrimerGatewayClient.from_settings(primer_settings)
    app.state.signature_verifier = WebhookSignatureVerifier(
        primer_settings.webhook_secret
    )
    app.state.billing_run_lock = BillingRunLock(
        get_redis_client,
        timeout_seconds=billing_settings.BILLING_RUN_LOCK_TIMEOUT_SECONDS,
        enabled=billing_settings.BILLING_RUN_LOCK_ENABLED,
    )

    logger.info(
        "Primer configuration loaded",
        api_key=mask_value(primer_settings.api_key),
        webhook_secret_configured=primer_settings.webhook_secret is not None,
        api_version=primer_settings.PRIMER_API_VERSION,
    )

    yield

    logger.info("Shutting down storefront API...")
    await close_redis_pool()


app = FastAPI(
    title="Storefront Billing API",
    description="Multi-domain storefront checkout and recurring subscription billing",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    docs_url=None if app_settings.is_production else "/docs",
    redoc_url=None if app_settings.is_production else "/redoc",
    openapi_url=None if app_settings.is_production else "/openapi.json",
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "storefront.main:app", host="0.0.0.0", port=8010, reload=True, access_log=False
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "storefront.main:app", host="0.0.0.0", port=8010, reload=False, access_log=False
    )
