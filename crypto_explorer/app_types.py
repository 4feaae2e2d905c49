"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """Cached provider payload with the epoch time it was stored."""
    data: Any
    stored_at: float
