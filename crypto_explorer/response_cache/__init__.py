"""Response cache backends."""

from .base import ResponseCache
from .memory import InMemoryResponseCache
from .redis import RedisResponseCache
from .single_flight import SingleFlight, cached_fetch, evict_oldest

__all__ = [
    "ResponseCache",
    "InMemoryResponseCache",
    "RedisResponseCache",
    "SingleFlight",
    "cached_fetch",
    "evict_oldest",
]
