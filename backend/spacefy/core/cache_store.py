"""Key-value cache store used by the response cache.

``CacheStore`` is the narrow async interface the cache engine depends on;
``RedisCacheStore`` implements it with ``redis.asyncio``. Errors are not
swallowed here: the engine decides which failures are fatal (invalidation)
and which fail open (lookup, indexing).
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Optional, Protocol

import redis.asyncio as redis

from .config import Settings

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store *value*. ``ttl`` in seconds; None or 0 means no expiry."""
        ...

    async def delete(self, *keys: str) -> int:
        ...

    async def sadd(self, key: str, *members: str) -> int:
        ...

    async def smembers(self, key: str) -> set[str]:
        ...

    def scan_iter(self, match: str, count: int) -> AsyncIterator[str]:
        """Iterate keys matching *match* using cursor-based SCAN (non-blocking)."""
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


class RedisCacheStore:
    """CacheStore backed by a Redis server."""

    def __init__(self, client: "redis.Redis"):
        self._client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 2.0) -> "RedisCacheStore":
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if ttl:
            await self._client.set(key, value, ex=ttl)
        else:
            await self._client.set(key, value)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._client.delete(*keys)

    async def sadd(self, key: str, *members: str) -> int:
        return await self._client.sadd(key, *members)

    async def smembers(self, key: str) -> set[str]:
        return set(await self._client.smembers(key))

    async def scan_iter(self, match: str, count: int) -> AsyncIterator[str]:
        async for key in self._client.scan_iter(match=match, count=count):
            yield key

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")


def create_cache_store(settings: Settings) -> Optional[CacheStore]:
    """Build the configured store, or None when caching is disabled."""
    if not settings.cache_enabled:
        logger.info("Response cache disabled (REDIS_URL is empty)")
        return None
    return RedisCacheStore.from_url(settings.redis_url, settings.redis_socket_timeout)
