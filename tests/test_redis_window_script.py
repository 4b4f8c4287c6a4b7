"""Tests for the Lua window procedures.

The scripts run inside fakeredis' embedded Lua interpreter, so these tests
need no server and always run. The live-server variant lives in
``test_redis_store.py``.
"""

from unittest.mock import Mock

import fakeredis
import pytest

from window_limiter.adapters.rate_limit.base import RateLimitResult
from window_limiter.adapters.rate_limit.redis_store import RedisWindowStore
from window_limiter.services.rate_limiter import SlidingWindowRateLimiter

T0 = 1_700_000_000_000
KEY = "rl:user"


@pytest.fixture
def redis() -> fakeredis.FakeAsyncRedis:
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=T0)


def _limiter(redis: fakeredis.FakeAsyncRedis, clock: Mock, max_requests: int = 10) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter.from_store(
        RedisWindowStore(redis),
        prefix="rl",
        window_ms=60_000,
        max_requests=max_requests,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_window_lifecycle(redis: fakeredis.FakeAsyncRedis, clock: Mock) -> None:
    limiter = _limiter(redis, clock)

    for i in range(10):
        clock.return_value = T0 + i * 1000
        assert await limiter.limit("user") == RateLimitResult(9 - i, T0 + 60_000, False)

    clock.return_value = T0 + 10_000
    assert await limiter.limit("user") == RateLimitResult(0, T0 + 60_000, True)
    assert await limiter.check("user") == RateLimitResult(0, T0 + 60_000, True)
    assert await redis.zcard(KEY) == 10

    clock.return_value = T0 + 60_001
    assert await limiter.limit("user") == RateLimitResult(0, T0 + 61_000, False)

    await limiter.reset("user")
    assert await redis.exists(KEY) == 0

    clock.return_value = T0 + 62_001
    assert await limiter.limit("user") == RateLimitResult(9, T0 + 122_001, False)


@pytest.mark.asyncio
async def test_admission_sets_expiry_one_window_past_newest_entry(
    redis: fakeredis.FakeAsyncRedis, clock: Mock
) -> None:
    limiter = _limiter(redis, clock)

    await limiter.limit("user")

    pttl = await redis.pttl(KEY)
    assert 0 < pttl <= 60_000


@pytest.mark.asyncio
async def test_same_timestamp_admissions_keep_distinct_members(
    redis: fakeredis.FakeAsyncRedis, clock: Mock
) -> None:
    limiter = _limiter(redis, clock)

    results = [await limiter.limit("user") for _ in range(3)]

    assert [r.remaining_requests for r in results] == [9, 8, 7]
    assert await redis.zrange(KEY, 0, -1) == [f"{T0}-0", f"{T0}-1", f"{T0}-2"]
    assert await redis.zscore(KEY, f"{T0}-2") == T0


@pytest.mark.asyncio
async def test_check_prunes_expired_entries_without_recording(
    redis: fakeredis.FakeAsyncRedis, clock: Mock
) -> None:
    limiter = _limiter(redis, clock)
    await limiter.limit("user")
    clock.return_value = T0 + 30_000
    await limiter.limit("user")

    clock.return_value = T0 + 60_001
    result = await limiter.check("user")

    assert result == RateLimitResult(9, T0 + 90_000, False)
    assert await redis.zrange(KEY, 0, -1) == [f"{T0 + 30_000}-0"]


@pytest.mark.asyncio
async def test_entry_exactly_one_window_old_still_counts(
    redis: fakeredis.FakeAsyncRedis, clock: Mock
) -> None:
    limiter = _limiter(redis, clock, max_requests=1)
    await limiter.limit("user")

    clock.return_value = T0 + 60_000
    assert await limiter.check("user") == RateLimitResult(0, T0 + 60_000, True)

    clock.return_value = T0 + 60_001
    assert await limiter.check("user") == RateLimitResult(1, T0 + 60_001, False)


@pytest.mark.asyncio
async def test_read_only_procedure_on_missing_key_creates_nothing(
    redis: fakeredis.FakeAsyncRedis, clock: Mock
) -> None:
    limiter = _limiter(redis, clock)

    assert await limiter.check("user") == RateLimitResult(10, T0, False)
    assert await redis.exists(KEY) == 0
