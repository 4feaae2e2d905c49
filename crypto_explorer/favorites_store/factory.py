"""Factory helper for choosing a favorites backend at startup."""

from __future__ import annotations

from crypto_explorer import config
from crypto_explorer.favorites_store.base import FavoritesStore
from crypto_explorer.favorites_store.memory import InMemoryFavoritesStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="favorites_store/factory")


def build_favorites_store(settings: config.Settings | None = None, *, create_schema: bool = True) -> FavoritesStore:
    """Instantiate the configured favorites store, creating its table when SQL-backed."""
    settings = settings or config.settings
    backend = (settings.favorites_backend or "sql").lower()

    if backend == "memory":
        logger.info("Using in-memory favorites store")
        return InMemoryFavoritesStore()

    if backend == "sql":
        from .sql import SqlFavoritesStore

        if not settings.favorites_database_url:
            raise ValueError("favorites_database_url must be set for the sql favorites backend")
        store = SqlFavoritesStore.from_url(settings.favorites_database_url)
        if create_schema:
            store.create_schema()
        return store

    raise ValueError(f"Unknown favorites backend '{backend}'")
