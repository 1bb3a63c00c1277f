"""
Rate limiting backends for the aiteru API.

Only the endpoints that reach metered upstream services (Gemini, Yahoo!) are
limited; see ``LIMITED_PREFIXES``.

- InMemoryBackend (既定): シングルワーカー用、追加依存なし
- RedisBackend (任意): マルチワーカー用、REDIS_URL が設定されていれば有効
"""
import logging
import os
import time
from collections import deque
from typing import Deque, Dict, Protocol

logger = logging.getLogger(__name__)

LIMITED_PREFIXES = ("/api/events", "/api/congestion", "/api/search-venues")


def rate_limit_bucket(path: str) -> str | None:
    """パスから制限バケット名を返す. 対象外なら None."""
    for prefix in LIMITED_PREFIXES:
        if path.startswith(prefix):
            return prefix.rsplit("/", 1)[-1]
    return None


class RateLimitBackend(Protocol):
    async def hit(self, key: str, limit: int, window: int) -> bool:
        """Record one request for ``key``; True when it exceeds ``limit`` per ``window`` seconds."""
        ...


class InMemoryBackend:
    """Sliding window per key, stale keys dropped on a fixed interval."""

    def __init__(self, cleanup_interval: float = 600.0) -> None:
        self._hits: Dict[str, Deque[float]] = {}
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.monotonic()

    def _drop_idle_keys(self, now: float, window: int) -> None:
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        for key in [k for k, q in self._hits.items() if not q or now - q[-1] > window]:
            del self._hits[key]

    async def hit(self, key: str, limit: int, window: int) -> bool:
        now = time.monotonic()
        self._drop_idle_keys(now, window)

        hits = self._hits.setdefault(key, deque())
        while hits and now - hits[0] >= window:
            hits.popleft()

        if len(hits) >= limit:
            return True
        hits.append(now)
        return False


class RedisBackend:
    """Fixed window counter (INCR + EXPIRE), shared across workers."""

    def __init__(self, redis_url: str) -> None:
        import redis.asyncio as aioredis

        self._redis = aioredis.from_url(redis_url, decode_responses=True)
        logger.info("Rate limiting: Redis backend (%s)", redis_url.split("@")[-1])

    async def hit(self, key: str, limit: int, window: int) -> bool:
        slot = int(time.time() // window)
        redis_key = f"aiteru:rate_limit:{key}:{slot}"
        pipe = self._redis.pipeline()
        pipe.incr(redis_key)
        pipe.expire(redis_key, window + 5)
        count, _ = await pipe.execute()
        return int(count) > limit


def create_backend() -> RateLimitBackend:
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        return RedisBackend(redis_url)
    return InMemoryBackend()
