"""In-process response cache with a freshness window checked at read time."""

import threading
import time
from typing import Callable, Iterator, Optional

from crypto_explorer.app_types import CacheEntry
from crypto_explorer.response_cache.base import ResponseCache

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="response_cache/in_memory_response_cache")


class InMemoryResponseCache(ResponseCache):
    """Thread-safe dict-backed cache; nothing expires until a caller asks `is_valid`."""

    def __init__(
        self,
        ttl_seconds: float = 60,
        name: str = "default",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize an empty cache with a freshness window in seconds."""
        logger.debug("Initializing InMemoryResponseCache", extra={"cache": name, "ttl_seconds": ttl_seconds})
        self.ttl = ttl_seconds
        self.name = name
        self.clock = clock
        # dicts keep insertion order, which keys() relies on for oldest-first eviction
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            # overwriting keeps the existing insertion slot
            self._entries[key] = entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def is_valid(self, entry: Optional[CacheEntry]) -> bool:
        """Return True if the entry exists and is younger than the TTL."""
        if entry is None:
            return False
        return self.clock() - entry.stored_at < self.ttl

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> Iterator[str]:
        with self._lock:
            snapshot = list(self._entries)
        return iter(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
