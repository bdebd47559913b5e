"""Rate limiting service with pluggable backing stores.

The in-memory store keeps a sliding window of hit timestamps per key and is
only correct for a single process. The Redis store uses fixed-window
INCR/EXPIRE counters shared across instances.
"""

from __future__ import annotations

import math
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import structlog

from relohub.errors import RateLimitError

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


class RateLimitStore(Protocol):
    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult: ...

    async def reset(self, key: str) -> None: ...


class MemoryRateLimitStore:
    """Sliding-window counters held in process memory."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._hits: dict[str, tuple[int, deque[float]]] = {}

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        _, hits = self._hits.get(key, (window_seconds, deque()))
        while hits and now - hits[0] >= window_seconds:
            hits.popleft()

        if len(hits) >= limit:
            retry_after = max(1, math.ceil(hits[0] + window_seconds - now))
            self._hits[key] = (window_seconds, hits)
            return RateLimitResult(allowed=False, limit=limit, remaining=0, retry_after=retry_after)

        hits.append(now)
        self._hits[key] = (window_seconds, hits)
        return RateLimitResult(allowed=True, limit=limit, remaining=limit - len(hits))

    async def reset(self, key: str) -> None:
        self._hits.pop(key, None)

    def sweep(self) -> int:
        """Drop keys whose hits have all left their window. Returns keys removed."""
        now = self._clock()
        removed = 0
        for key in list(self._hits):
            window, hits = self._hits[key]
            while hits and now - hits[0] >= window:
                hits.popleft()
            if not hits:
                del self._hits[key]
                removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._hits)


class RedisRateLimitStore:
    """Fixed-window counters in Redis."""

    def __init__(self, redis: Redis, prefix: str = "ratelimit") -> None:
        self._redis = redis
        self._prefix = prefix

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = int(time.time())
        window = now // window_seconds
        rate_key = f"{self._prefix}:{key}:{window}"

        pipe = self._redis.pipeline()
        pipe.incr(rate_key)
        pipe.expire(rate_key, window_seconds + 1)
        results = await pipe.execute()

        current_count: int = results[0]
        if current_count > limit:
            retry_after = max(1, (window + 1) * window_seconds - now)
            return RateLimitResult(allowed=False, limit=limit, remaining=0, retry_after=retry_after)
        return RateLimitResult(allowed=True, limit=limit, remaining=max(0, limit - current_count))

    async def reset(self, key: str) -> None:
        async for found in self._redis.scan_iter(match=f"{self._prefix}:{key}:*"):
            await self._redis.delete(found)


class RateLimiter:
    """Facade used by middleware and handlers."""

    def __init__(self, store: RateLimitStore) -> None:
        self.store = store

    async def check(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        return await self.store.hit(key, limit, window_seconds)

    async def enforce(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        """Record a hit and raise RateLimitError when over the limit."""
        result = await self.check(key, limit, window_seconds)
        if not result.allowed:
            logger.warning("rate_limited", key=key, retry_after=result.retry_after)
            msg = "Too many requests. Please try again later."
            raise RateLimitError(msg, retry_after=result.retry_after)
        return result

    async def reset(self, key: str) -> None:
        await self.store.reset(key)

    def sweep(self) -> int:
        """Sweep expired in-memory entries; no-op for shared stores."""
        if isinstance(self.store, MemoryRateLimitStore):
            return self.store.sweep()
        return 0
