"""Health check endpoints for monitoring."""

import redis.asyncio as redis
from fastapi import APIRouter, Depends

from storefront.api.core.dependencies import AsyncSessionDep
from storefront.modules.health.service import HealthService, OverallHealthStatus
from storefront.redis.client import get_redis_client

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check(
    db: AsyncSessionDep,
    redis: redis.Redis = Depends(get_redis_client),
) -> OverallHealthStatus:
    """Database and Redis connectivity."""
    health_service = HealthService(db, redis)
    return await health_service.run_all_checks()


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "storefront-billing"}
