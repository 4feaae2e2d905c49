"""Per-key single-flight locking and the fetch-through helper used by every fetcher."""

import threading
from contextlib import contextmanager, nullcontext
from typing import Any, Callable, Iterator, Optional

from crypto_explorer.app_types import CacheEntry
from crypto_explorer.response_cache.base import ResponseCache
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="response_cache/single_flight")


class SingleFlight:
    """Hands out one lock per key so only one provider call per key is in flight."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._waiters: dict[str, int] = {}

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """Hold the lock for `key` for the duration of the block."""
        with self._guard:
            key_lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            with key_lock:
                yield
        finally:
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def in_flight(self) -> int:
        """Number of keys with a holder or waiter."""
        with self._guard:
            return len(self._locks)


def evict_oldest(cache: ResponseCache, max_entries: int) -> None:
    """Delete oldest-inserted keys until the cache holds at most `max_entries`."""
    while cache.size > max_entries:
        oldest = next(iter(cache.keys()), None)
        if oldest is None:
            return
        cache.delete(oldest)
        logger.debug("Evicted cache entry", extra={"key": oldest})


def cached_fetch(
    cache: ResponseCache,
    key: str,
    loader: Callable[[], Any],
    *,
    flight: Optional[SingleFlight] = None,
    max_entries: Optional[int] = None,
) -> Any:
    """
    Return the fresh cached payload for `key`, or call `loader`, store and return its result.

    With a `flight`, the miss path runs under the key's lock and re-reads the cache
    once the lock is held, so callers that queued behind the first one get its result.
    Loader exceptions propagate and nothing is stored.
    """
    entry = cache.get(key)
    if cache.is_valid(entry):
        logger.debug("Cache hit", extra={"key": key})
        return entry.data

    with flight.lock(key) if flight is not None else nullcontext():
        entry = cache.get(key)
        if cache.is_valid(entry):
            logger.debug("Cache filled while waiting", extra={"key": key})
            return entry.data

        logger.debug("Cache miss", extra={"key": key})
        data = loader()
        cache.set(key, CacheEntry(data=data, stored_at=cache.clock()))
        if max_entries is not None:
            evict_oldest(cache, max_entries)
        return data
