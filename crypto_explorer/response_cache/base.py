"""Shared protocol for response cache backends."""

from typing import Callable, Iterator, Optional, Protocol

from crypto_explorer.app_types import CacheEntry


class ResponseCache(Protocol):
    """Protocol for time-bounded key/value caches in front of the market-data provider."""
    ttl: float
    clock: Callable[[], float]

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry (fresh or stale) or None."""

    def set(self, key: str, entry: CacheEntry) -> None:
        """Store or overwrite the entry for `key`."""

    def delete(self, key: str) -> bool:
        """Remove `key`, returning True if it was present."""

    def is_valid(self, entry: Optional[CacheEntry]) -> bool:
        """Return True if `entry` exists and is younger than the freshness window."""

    @property
    def size(self) -> int:
        """Number of stored entries, stale ones included."""

    def keys(self) -> Iterator[str]:
        """Iterate keys oldest-inserted first."""

    def clear(self) -> None:
        """Drop every entry."""
