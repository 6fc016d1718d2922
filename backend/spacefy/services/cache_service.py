"""Response cache engine — lookup, tag-indexed storage, and invalidation.

Read path (``lookup``, ``remember``) fails open: a store error is logged and
treated as a miss or a no-op, the request never fails because of the cache.
Invalidation (``invalidate``) lets errors propagate; it runs on the
background ``InvalidationWorker`` which logs them.
"""

import json
import logging
from enum import Enum
from typing import Optional

from ..core.cache_store import CacheStore
from .cache_tags import RequestShape, fallback_patterns, tag_set_key, tags_for

logger = logging.getLogger(__name__)


class CacheCategory(str, Enum):
    """Response categories with their own TTL."""

    LIST = "list"
    BY_ID = "by_id"


def is_success_body(body) -> bool:
    """True when a JSON body carries a success marker."""
    if not isinstance(body, dict):
        return False
    return body.get("success") is True or body.get("status") == "success"


class CacheEngine:
    def __init__(
        self,
        store: CacheStore,
        ttl_list: int = 60,
        ttl_by_id: int = 300,
        scan_count: int = 100,
    ):
        self.store = store
        self.ttl_list = ttl_list
        self.ttl_by_id = ttl_by_id
        self.scan_count = scan_count

    def ttl_for(self, category: CacheCategory) -> int:
        if category is CacheCategory.LIST:
            return self.ttl_list
        return self.ttl_by_id

    async def lookup(self, key: str) -> Optional[dict]:
        """Return the cached body for *key*, or None on miss or store failure."""
        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.warning("Cache lookup failed, serving from database: %s", e, extra={"cache_key": key})
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unreadable cache entry", extra={"cache_key": key})
            return None

    async def remember(self, key: str, body: bytes, ttl: int, shape: RequestShape) -> bool:
        """Store a successful response body and index *key* under the shape's tags.

        Returns True when the entry was written.
        """
        try:
            parsed = json.loads(body)
        except (TypeError, ValueError):
            return False
        if not is_success_body(parsed):
            return False

        try:
            await self.store.set(key, body.decode(), ttl or None)
            for tag in tags_for(shape):
                await self.store.sadd(tag_set_key(tag), key)
        except Exception as e:
            logger.warning("Cache write failed: %s", e, extra={"cache_key": key})
            return False
        return True

    async def invalidate(self, shape: RequestShape) -> int:
        """Delete every entry indexed under the shape's tags, then sweep fallback patterns.

        All tag memberships are read before anything is deleted. Returns the
        number of keys removed (tag sets excluded).
        """
        tag_keys = [tag_set_key(tag) for tag in sorted(tags_for(shape))]

        members: set[str] = set()
        for tag_key in tag_keys:
            members |= await self.store.smembers(tag_key)

        await self.store.delete(*tag_keys, *members)
        removed = len(members)

        for pattern in fallback_patterns(shape):
            removed += await self._sweep(pattern)

        logger.debug(
            "Cache invalidated",
            extra={"entity": shape.route_entity, "params": dict(shape.params), "removed": removed},
        )
        return removed

    async def _sweep(self, pattern: str) -> int:
        """SCAN-and-delete every key matching *pattern*, in batches of ``scan_count``."""
        removed = 0
        batch: list[str] = []
        async for key in self.store.scan_iter(match=pattern, count=self.scan_count):
            batch.append(key)
            if len(batch) >= self.scan_count:
                removed += await self.store.delete(*batch)
                batch = []
        if batch:
            removed += await self.store.delete(*batch)
        return removed
