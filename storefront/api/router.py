from fastapi import APIRouter

from storefront.api.billing.router import router as billing_router
from storefront.api.health.router import router as health_router
from storefront.api.primer.router import router as primer_router
from storefront.api.pages.router import router as pages_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(pages_router)
api_router.include_router(primer_router)
api_router.include_router(billing_router)
