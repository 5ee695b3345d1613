"""Sliding-window request limiter keyed by caller identity.

The limiter state is process-wide: it is created lazily on first use, never
persisted and cleared by ``reset_rate_limiter()`` (or a restart). Deployments
running more than one instance switch ``RATE_LIMIT_BACKEND`` to ``redis`` so
all instances share the counters.
"""

from __future__ import annotations

import math
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Protocol

import structlog
from backoffice.core.config import get_settings
from backoffice.core.errors import RateLimitError

logger = structlog.get_logger()


class RateLimitBackend(Protocol):
    async def record_hit(self, key: str, now: float, window_seconds: int) -> int:
        """Record a request at ``now`` and return the hits inside the window."""
        ...

    async def banned_until(self, key: str) -> float | None: ...

    async def ban(self, key: str, until: float) -> None: ...

    async def clear(self) -> None: ...


@dataclass
class _Record:
    timestamps: deque[float] = field(default_factory=deque)
    banned_until: float | None = None


class InMemoryRateLimitBackend:
    """Per-process counters; lost on restart."""

    def __init__(self) -> None:
        self._records: dict[str, _Record] = {}
        self._last_sweep = 0.0

    def __len__(self) -> int:
        return len(self._records)

    async def record_hit(self, key: str, now: float, window_seconds: int) -> int:
        if now - self._last_sweep >= window_seconds:
            self._sweep(now, window_seconds)
        record = self._records.setdefault(key, _Record())
        _expire(record, now, window_seconds)
        record.timestamps.append(now)
        return len(record.timestamps)

    async def banned_until(self, key: str) -> float | None:
        record = self._records.get(key)
        return record.banned_until if record else None

    async def ban(self, key: str, until: float) -> None:
        self._records.setdefault(key, _Record()).banned_until = until

    async def clear(self) -> None:
        self._records.clear()
        self._last_sweep = 0.0

    def _sweep(self, now: float, window_seconds: int) -> None:
        """Drop identities with no hits left in the window and no active ban."""
        for key, record in list(self._records.items()):
            _expire(record, now, window_seconds)
            ban_over = record.banned_until is None or record.banned_until <= now
            if not record.timestamps and ban_over:
                del self._records[key]
        self._last_sweep = now


def _expire(record: _Record, now: float, window_seconds: int) -> None:
    while record.timestamps and now - record.timestamps[0] > window_seconds:
        record.timestamps.popleft()


class RedisRateLimitBackend:
    """Counters shared through Redis sorted sets."""

    def __init__(self, url: str, *, prefix: str = "ratelimit") -> None:
        import redis.asyncio as aioredis

        self._client = aioredis.from_url(url)
        self._prefix = prefix

    async def record_hit(self, key: str, now: float, window_seconds: int) -> int:
        hits_key = f"{self._prefix}:hits:{key}"
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(hits_key, 0, now - window_seconds)
            pipe.zadd(hits_key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.zcard(hits_key)
            pipe.expire(hits_key, window_seconds)
            _, _, count, _ = await pipe.execute()
        return int(count)

    async def banned_until(self, key: str) -> float | None:
        value = await self._client.get(f"{self._prefix}:ban:{key}")
        return float(value) if value is not None else None

    async def ban(self, key: str, until: float) -> None:
        ttl = max(1, math.ceil(until - time.time()))
        await self._client.set(f"{self._prefix}:ban:{key}", str(until), ex=ttl)

    async def clear(self) -> None:
        async for key in self._client.scan_iter(match=f"{self._prefix}:*"):
            await self._client.delete(key)


class SlidingWindowRateLimiter:
    """Allow ``max_requests`` per ``window_seconds``, then ban for ``ban_seconds``."""

    def __init__(
        self,
        backend: RateLimitBackend,
        *,
        max_requests: int,
        window_seconds: int,
        ban_seconds: int,
    ) -> None:
        self.backend = backend
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.ban_seconds = ban_seconds

    async def check(self, identity: str, *, now: float | None = None) -> None:
        """Record a request for ``identity``; raise RateLimitError when over the limit."""
        now = time.time() if now is None else now

        banned_until = await self.backend.banned_until(identity)
        if banned_until is not None and banned_until > now:
            remaining = math.ceil((banned_until - now) / 60)
            logger.warning("rate_limit_banned_request", identity=identity, minutes_left=remaining)
            raise RateLimitError(
                f"Too many requests. Temporarily banned. Try again in {remaining} minutes."
            )

        hits = await self.backend.record_hit(identity, now, self.window_seconds)
        if hits > self.max_requests:
            until = now + self.ban_seconds
            await self.backend.ban(identity, until)
            logger.warning("rate_limit_ban_applied", identity=identity, banned_until=until)
            raise RateLimitError("Too many requests. Temporarily banned.")

    async def reset(self) -> None:
        await self.backend.clear()


_limiter: SlidingWindowRateLimiter | None = None


def get_rate_limiter() -> SlidingWindowRateLimiter:
    global _limiter

    if _limiter is None:
        settings = get_settings()
        backend: RateLimitBackend
        if settings.rate_limit_backend == "redis":
            backend = RedisRateLimitBackend(settings.redis_url)
        else:
            backend = InMemoryRateLimitBackend()
        _limiter = SlidingWindowRateLimiter(
            backend,
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            ban_seconds=settings.rate_limit_ban_seconds,
        )
    return _limiter


def reset_rate_limiter() -> None:
    """Drop the process-wide limiter; the next call starts from empty state."""
    global _limiter
    _limiter = None
