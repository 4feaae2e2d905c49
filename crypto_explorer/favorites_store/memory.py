"""In-memory favorites store, intended for development and tests."""

import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, List

from crypto_explorer.favorites_store.base import AddOutcome, AddResult, FavoritesStore, require_asset_id
from crypto_explorer.models import Favorite
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="favorites_store/in_memory_favorites_store")


class InMemoryFavoritesStore(FavoritesStore):
    """Thread-safe dict keyed by asset id, with the same semantics as the SQL store."""

    def __init__(self, *, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)) -> None:
        logger.debug("Initializing InMemoryFavoritesStore")
        self.clock = clock
        self._favorites: dict[str, Favorite] = {}
        self._lock = threading.Lock()

    def list(self) -> List[Favorite]:
        with self._lock:
            favorites = list(self._favorites.values())
        return sorted(favorites, key=lambda f: f.created_at, reverse=True)

    def add(self, asset_id: str) -> AddResult:
        asset_id = require_asset_id(asset_id)
        with self._lock:
            existing = self._favorites.get(asset_id)
            if existing is not None:
                return AddResult(AddOutcome.ALREADY_EXISTS, existing)
            favorite = Favorite(id=str(uuid.uuid4()), asset_id=asset_id, created_at=self.clock())
            self._favorites[asset_id] = favorite
        return AddResult(AddOutcome.CREATED, favorite)

    def remove(self, asset_id: str) -> None:
        asset_id = require_asset_id(asset_id)
        with self._lock:
            self._favorites.pop(asset_id, None)

    def clear(self) -> None:
        with self._lock:
            self._favorites.clear()
