"""Exception types raised at the provider, store and API-client boundaries."""

from __future__ import annotations

from typing import Optional

RATE_LIMITED_STATUS = 429


class ExplorerError(Exception):
    """Base class for every error this package raises on purpose."""


class FetchFailedError(ExplorerError):
    """The market-data provider answered with a non-2xx status, bad JSON, or not at all."""

    def __init__(self, resource: str, status_code: Optional[int] = None, reason: str | None = None) -> None:
        self.resource = resource
        self.status_code = status_code
        self.reason = reason
        detail = f"status {status_code}" if status_code is not None else (reason or "no response")
        super().__init__(f"Failed to fetch {resource}: {detail}")

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMITED_STATUS


class FavoritesValidationError(ExplorerError):
    """A favorites operation was called without an asset id."""

    def __init__(self, message: str = "asset_id is required") -> None:
        super().__init__(message)


class FavoritesOperationError(ExplorerError):
    """The favorites store failed for a reason other than a duplicate asset id."""

    def __init__(self, operation: str, reason: str | None = None) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Favorites {operation} failed" + (f": {reason}" if reason else ""))


class ApiError(ExplorerError):
    """Non-success answer from the explorer HTTP API, seen from the list engine.

    `status_code` is None when no response arrived at all.
    """

    def __init__(self, status_code: Optional[int], message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMITED_STATUS


class OperationCancelled(ExplorerError):
    """A fetch finished after its cancellation token was cancelled; the result is dropped."""
