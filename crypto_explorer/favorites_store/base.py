"""Shared protocol, result types and validation for favorites backends."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol

from crypto_explorer.errors import FavoritesValidationError
from crypto_explorer.models import Favorite


class AddOutcome(str, Enum):
    """How an add resolved; a duplicate is a success, not an error."""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass
class AddResult:
    """Outcome of `add` plus the stored row (new or pre-existing) when known."""
    outcome: AddOutcome
    favorite: Optional[Favorite] = None

    @property
    def created(self) -> bool:
        return self.outcome is AddOutcome.CREATED


def require_asset_id(asset_id: Optional[str]) -> str:
    """Return `asset_id` or raise FavoritesValidationError when it is missing or blank."""
    if not isinstance(asset_id, str) or not asset_id.strip():
        raise FavoritesValidationError()
    return asset_id


class FavoritesStore(Protocol):
    """Protocol for favorites persistence backends."""

    def list(self) -> List[Favorite]:
        """Return every favorite, newest first."""

    def add(self, asset_id: str) -> AddResult:
        """Insert a favorite; an existing asset id yields ALREADY_EXISTS."""

    def remove(self, asset_id: str) -> None:
        """Delete the favorite for `asset_id`; absent ids are not an error."""

    def clear(self) -> None:
        """Delete every favorite."""
