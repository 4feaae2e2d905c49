"""Favorites storage backends."""

from .base import AddOutcome, AddResult, FavoritesStore, require_asset_id
from .factory import build_favorites_store
from .memory import InMemoryFavoritesStore
from .sql import SqlFavoritesStore

__all__ = [
    "AddOutcome",
    "AddResult",
    "FavoritesStore",
    "require_asset_id",
    "build_favorites_store",
    "InMemoryFavoritesStore",
    "SqlFavoritesStore",
]
