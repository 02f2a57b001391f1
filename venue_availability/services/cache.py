"""
Redis cache for computed availability grids.

Namespaced keys: venue_availability:{namespace}:{key}
All values serialised as JSON.

Local dev:   redis://localhost:6379/0
Production:  set REDIS_URL in .env

Redis is optional at runtime: every method logs and degrades to a miss /
no-op when the server can't be reached, so availability is just recomputed.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from redis.asyncio import ConnectionPool, Redis

from venue_availability.core.config import settings

logger = logging.getLogger(__name__)

_PREFIX = "venue_availability"

# ── Single connection pool shared across the whole app ────────────────────────
_pool: Optional[ConnectionPool] = None


def _get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=20,
            decode_responses=True,
        )
    return _pool


def get_redis() -> Redis:
    return Redis(connection_pool=_get_pool())


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


class RedisCache:
    """
    Async TTL cache backed by Redis.
    All methods are async.
    """

    def __init__(self, namespace: str, default_ttl_seconds: int = 300):
        self.ns  = namespace
        self.ttl = default_ttl_seconds

    def _key(self, key: str) -> str:
        return f"{_PREFIX}:{self.ns}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await get_redis().get(self._key(key))
        except Exception as exc:
            logger.warning("[%s] get failed — %s", self.ns, exc)
            return None
        if raw is None:
            logger.debug("[%s] MISS %s", self.ns, key)
            return None
        logger.debug("[%s] HIT  %s", self.ns, key)
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl
        try:
            await get_redis().setex(self._key(key), ttl, json.dumps(value))
            logger.debug("[%s] SET  %s (ttl=%ds)", self.ns, key, ttl)
        except Exception as exc:
            logger.warning("[%s] set failed — %s", self.ns, exc)

    async def delete_prefix(self, prefix: str) -> int:
        """Drop every key starting with `prefix`, e.g. all windows cached for one venue."""
        removed = 0
        try:
            r = get_redis()
            keys = [k async for k in r.scan_iter(match=self._key(f"{prefix}*"))]
            if keys:
                removed = await r.delete(*keys)
            logger.debug("[%s] invalidated %d keys for %s", self.ns, removed, prefix)
        except Exception as exc:
            logger.warning("[%s] delete_prefix failed — %s", self.ns, exc)
        return removed

    async def stats(self) -> dict:
        try:
            keys = [k async for k in get_redis().scan_iter(match=self._key("*"))]
            return {"cache": self.ns, "live_entries": len(keys)}
        except Exception as exc:
            return {"cache": self.ns, "error": str(exc)}


# ── Shared instance ───────────────────────────────────────────────────────────

availability_cache = RedisCache(
    "availability", default_ttl_seconds=settings.AVAILABILITY_CACHE_TTL_SECONDS
)


def availability_key(venue_id: str, start: str, end: str) -> str:
    return f"{venue_id}:{start}:{end}"
