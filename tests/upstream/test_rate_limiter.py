import time

import pytest

from novelti.upstream.rate_limiter import TokenBucketRateLimiter


@pytest.mark.parametrize(("rate", "burst"), [(0, 10), (-1, 10), (5, 0)])
def test_invalid_settings(rate, burst):
    with pytest.raises(ValueError):
        TokenBucketRateLimiter(rate, burst)


@pytest.mark.asyncio
async def test_burst_passes_without_waiting():
    limiter = TokenBucketRateLimiter(rate=1.0, burst=5)

    started = time.monotonic()
    for _ in range(5):
        await limiter.wait()

    assert time.monotonic() - started < 0.5
    assert limiter.available < 1.0


@pytest.mark.asyncio
async def test_waits_once_bucket_is_empty():
    limiter = TokenBucketRateLimiter(rate=20.0, burst=1)

    await limiter.wait()
    started = time.monotonic()
    await limiter.wait()

    assert time.monotonic() - started >= 0.04
