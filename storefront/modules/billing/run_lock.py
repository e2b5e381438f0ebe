"""Redis lock guarding against overlapping billing runs."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

from storefront.modules.billing.exceptions import BillingRunInProgressError
from storefront.utils.logger import get_logger

logger = get_logger(__name__)

BILLING_RUN_LOCK_KEY = "billing:process:lock"


class BillingRunLock:
    """Non-blocking, expiring lock around one billing run.

    When Redis cannot be reached the run proceeds unlocked; subscription
    claims still keep a subscription from being charged twice.
    """

    def __init__(
        self,
        get_client: Callable[[], Awaitable[redis.Redis]],
        timeout_seconds: int,
        enabled: bool = True,
        key: str = BILLING_RUN_LOCK_KEY,
    ):
        self._get_client = get_client
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled
        self.key = key

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        if not self.enabled:
            yield
            return

        lock = None
        try:
            client = await self._get_client()
            lock = client.lock(
                self.key, timeout=self.timeout_seconds, blocking=False
            )
            acquired = await lock.acquire()
        except (RedisError, OSError) as e:
            logger.warning(f"Billing run lock unavailable, continuing without it: {e!r}")
            lock = None
            acquired = True

        if not acquired:
            logger.warning("Billing run already in progress", lock_key=self.key)
            raise BillingRunInProgressError("A billing run is already in progress")

        try:
            yield
        finally:
            if lock is not None:
                try:
                    await lock.release()
                except (RedisError, OSError) as e:
                    logger.warning(f"Failed to release billing run lock: {e!r}")
