"""Tests for the billing run lock."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockError

from storefront.modules.billing.exceptions import BillingRunInProgressError
from storefront.modules.billing.run_lock import BILLING_RUN_LOCK_KEY, BillingRunLock


def _redis_with_lock(acquired=True):
    lock = MagicMock()
    lock.acquire = AsyncMock(return_value=acquired)
    lock.release = AsyncMock()
    client = MagicMock()
    client.lock.return_value = lock
    return client, lock


@pytest.mark.asyncio
async def test_acquires_and_releases_lock():
    client, lock = _redis_with_lock(acquired=True)
    run_lock = BillingRunLock(AsyncMock(return_value=client), timeout_seconds=120)

    async with run_lock.hold():
        lock.release.assert_not_awaited()

    client.lock.assert_called_once_with(
        BILLING_RUN_LOCK_KEY, timeout=120, blocking=False
    )
    lock.release.assert_awaited_once()


@pytest.mark.asyncio
async def test_held_lock_rejects_second_run():
    client, lock = _redis_with_lock(acquired=False)
    run_lock = BillingRunLock(AsyncMock(return_value=client), timeout_seconds=120)
    body = MagicMock()

    with pytest.raises(BillingRunInProgressError):
        async with run_lock.hold():
            body()

    body.assert_not_called()
    lock.release.assert_not_awaited()


@pytest.mark.asyncio
async def test_lock_released_when_run_raises():
    client, lock = _redis_with_lock(acquired=True)
    run_lock = BillingRunLock(AsyncMock(return_value=client), timeout_seconds=120)

    with pytest.raises(RuntimeError):
        async with run_lock.hold():
            raise RuntimeError("run failed")

    lock.release.assert_awaited_once()


@pytest.mark.asyncio
async def test_unreachable_redis_runs_unlocked():
    get_client = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    run_lock = BillingRunLock(get_client, timeout_seconds=120)
    body = MagicMock()

    async with run_lock.hold():
        body()

    body.assert_called_once()


@pytest.mark.asyncio
async def test_release_error_is_not_raised():
    client, lock = _redis_with_lock(acquired=True)
    lock.release.side_effect = LockError("lock expired")
    run_lock = BillingRunLock(AsyncMock(return_value=client), timeout_seconds=1)

    async with run_lock.hold():
        pass

    lock.release.assert_awaited_once()


@pytest.mark.asyncio
async def test_disabled_lock_never_touches_redis():
    get_client = AsyncMock()
    run_lock = BillingRunLock(get_client, timeout_seconds=120, enabled=False)

    async with run_lock.hold():
        pass

    get_client.assert_not_awaited()
