"""Redis-backed response cache, shared between server processes."""

import json
import math
import time
from typing import Callable, Iterator, Optional

from redis.exceptions import RedisError

from crypto_explorer.app_types import CacheEntry
from crypto_explorer.response_cache.base import ResponseCache
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="response_cache/redis_response_cache")


class RedisResponseCache(ResponseCache):
    """Redis cache storing JSON entries; freshness is still decided by `is_valid`."""

    def __init__(
        self,
        client,
        ttl_seconds: float = 60,
        prefix: str = "explorer:cache:",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize with a Redis client, freshness window and key prefix."""
        logger.debug("Initializing RedisResponseCache", extra={"prefix": prefix, "ttl_seconds": ttl_seconds})
        self.client = client
        self.ttl = ttl_seconds
        self.prefix = prefix
        self.clock = clock
        self._order_key = f"{prefix}__order__"

    def _key(self, key: str) -> str:
        """Return the Redis key for a cache key."""
        return f"{self.prefix}{key}"

    def _expiry_seconds(self) -> int:
        """Redis-side expiry; twice the freshness window so stale reads stay observable."""
        return max(1, math.ceil(self.ttl) * 2)

    @staticmethod
    def _decode(value) -> str:
        return value.decode("utf-8") if isinstance(value, (bytes, bytearray)) else str(value)

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.client.get(self._key(key))
        except RedisError as exc:
            logger.error("Failed to read cache entry from Redis: %s", exc)
            return None
        if not raw:
            return None
        try:
            payload = json.loads(self._decode(raw))
            return CacheEntry(data=payload["data"], stored_at=float(payload["stored_at"]))
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Failed to deserialize cache entry: %s", exc, extra={"key": key})
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        serialized = json.dumps({"data": entry.data, "stored_at": entry.stored_at}).encode("utf-8")
        redis_key = self._key(key)
        try:
            is_new = not self.client.exists(redis_key)
            self.client.setex(redis_key, self._expiry_seconds(), serialized)
            if is_new:
                self.client.lrem(self._order_key, 0, key)
                self.client.rpush(self._order_key, key)
        except RedisError as exc:
            logger.error("Failed to write cache entry to Redis: %s", exc)

    def delete(self, key: str) -> bool:
        try:
            removed = self.client.delete(self._key(key))
            self.client.lrem(self._order_key, 0, key)
        except RedisError as exc:
            logger.error("Failed to delete cache entry from Redis: %s", exc)
            return False
        return bool(removed)

    def is_valid(self, entry: Optional[CacheEntry]) -> bool:
        """Return True if the entry exists and is younger than the TTL."""
        if entry is None:
            return False
        return self.clock() - entry.stored_at < self.ttl

    def _live_keys(self) -> list[str]:
        """Ordered keys whose Redis entry has not expired yet."""
        try:
            ordered = [self._decode(k) for k in self.client.lrange(self._order_key, 0, -1)]
            return [k for k in ordered if self.client.exists(self._key(k))]
        except RedisError as exc:
            logger.error("Failed to list cache keys from Redis: %s", exc)
            return []

    @property
    def size(self) -> int:
        return len(self._live_keys())

    def keys(self) -> Iterator[str]:
        return iter(self._live_keys())

    def clear(self) -> None:
        """Best-effort removal of every key under the prefix."""
        try:
            for key in self.client.scan_iter(f"{self.prefix}*"):
                self.client.delete(key)
        except RedisError as exc:
            logger.error("Failed to clear cache in Redis: %s", exc)
