import pytest
from backoffice.core.errors import RateLimitError
from backoffice.core.rate_limit import InMemoryRateLimitBackend, SlidingWindowRateLimiter


def _limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(
        InMemoryRateLimitBackend(), max_requests=5, window_seconds=900, ban_seconds=3600
    )


async def test_allows_requests_up_to_the_limit() -> None:
    limiter = _limiter()

    for second in range(5):
        await limiter.check("10.0.0.1", now=1000.0 + second)


async def test_sixth_request_in_window_is_banned() -> None:
    limiter = _limiter()
    for second in range(5):
        await limiter.check("10.0.0.1", now=1000.0 + second)

    with pytest.raises(RateLimitError):
        await limiter.check("10.0.0.1", now=1010.0)

    # Still banned well after the window has slid past the original hits.
    with pytest.raises(RateLimitError) as excinfo:
        await limiter.check("10.0.0.1", now=1010.0 + 1800)
    assert "Try again in" in excinfo.value.message


async def test_ban_expires_after_ban_period() -> None:
    limiter = _limiter()
    for second in range(6):
        try:
            await limiter.check("10.0.0.1", now=1000.0 + second)
        except RateLimitError:
            pass

    await limiter.check("10.0.0.1", now=1005.0 + 3601)


async def test_old_hits_leave_the_window() -> None:
    limiter = _limiter()
    for second in range(5):
        await limiter.check("10.0.0.1", now=1000.0 + second)

    await limiter.check("10.0.0.1", now=1000.0 + 901 + 5)


async def test_identities_are_counted_separately() -> None:
    limiter = _limiter()
    for second in range(5):
        await limiter.check("10.0.0.1", now=1000.0 + second)

    await limiter.check("10.0.0.2", now=1006.0)


async def test_reset_clears_state() -> None:
    limiter = _limiter()
    for second in range(6):
        try:
            await limiter.check("10.0.0.1", now=1000.0 + second)
        except RateLimitError:
            pass

    await limiter.reset()

    await limiter.check("10.0.0.1", now=1007.0)


async def test_idle_identities_are_dropped() -> None:
    backend = InMemoryRateLimitBackend()
    limiter = SlidingWindowRateLimiter(backend, max_requests=5, window_seconds=900, ban_seconds=3600)
    for host in range(50):
        await limiter.check(f"10.0.1.{host}", now=1000.0)
    assert len(backend) == 50

    await limiter.check("10.0.2.1", now=1000.0 + 1800)

    assert len(backend) == 1


async def test_active_bans_survive_the_sweep() -> None:
    backend = InMemoryRateLimitBackend()
    limiter = SlidingWindowRateLimiter(backend, max_requests=5, window_seconds=900, ban_seconds=3600)
    for second in range(6):
        try:
            await limiter.check("10.0.0.1", now=1000.0 + second)
        except RateLimitError:
            pass

    await limiter.check("10.0.0.2", now=1000.0 + 1800)

    assert len(backend) == 2
    with pytest.raises(RateLimitError):
        await limiter.check("10.0.0.1", now=1000.0 + 1801)
