"""Thin client for the explorer HTTP API, used by the list engine and the favorites and detail views."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from crypto_explorer.config import settings
from crypto_explorer.errors import ApiError
from crypto_explorer.explorer.cancellation import CancellationToken
from crypto_explorer.favorites_store.base import AddOutcome
from crypto_explorer.models import AssetDetail, AssetPage, Favorite, HistoryPoint
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="explorer/api_client")


class ExplorerApiClient:
    """Minimal client for the /api routes; every failure surfaces as ApiError."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
        api_key: str | None = None,
    ) -> None:
        """Initialize client configuration, defaulting to settings."""
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.api_key = api_key if api_key is not None else settings.api_key

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[CancellationToken] = None,
        **kwargs,
    ) -> tuple[int, Any]:
        """Send a request and return (status, parsed JSON), raising ApiError on failure."""
        if token is not None:
            token.raise_if_cancelled()

        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        url = f"{self.base_url}{path}"

        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            logger.warning("Explorer API request failed", extra={"url": url, "error": str(exc)})
            raise ApiError(None, str(exc)) from exc

        # a response that lands after cancellation is not inspected
        if token is not None:
            token.raise_if_cancelled()

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not 200 <= resp.status_code < 300:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(resp.status_code, message or (resp.text or "")[:200])
        if data is None:
            raise ApiError(resp.status_code, "invalid JSON")
        if isinstance(data, dict) and data.get("error"):
            raise ApiError(resp.status_code, str(data["error"]))
        return resp.status_code, data

    def list_assets(
        self,
        page: int | None = None,
        per_page: int | None = None,
        *,
        token: Optional[CancellationToken] = None,
    ) -> AssetPage:
        """Fetch one listing page; omitted arguments use the server defaults."""
        params: Dict[str, int] = {}
        if page is not None:
            params["page"] = page
        if per_page is not None:
            params["per_page"] = per_page
        _status, data = self._request("GET", "/assets", params=params, token=token)
        return self._parse(AssetPage, data)

    def get_asset_detail(self, asset_id: str, *, token: Optional[CancellationToken] = None) -> AssetDetail:
        _status, data = self._request("GET", f"/assets/{quote(asset_id, safe='')}", token=token)
        return self._parse(AssetDetail, data)

    def get_asset_history(self, asset_id: str, *, token: Optional[CancellationToken] = None) -> List[HistoryPoint]:
        _status, data = self._request("GET", f"/assets/{quote(asset_id, safe='')}/chart", token=token)
        if not isinstance(data, list):
            raise ApiError(200, "unexpected chart payload")
        return [self._parse(HistoryPoint, point) for point in data]

    def list_favorites(self, *, token: Optional[CancellationToken] = None) -> List[Favorite]:
        _status, data = self._request("GET", "/favorites", token=token)
        if not isinstance(data, dict):
            raise ApiError(200, "unexpected favorites payload")
        return [self._parse(Favorite, item) for item in (data.get("favorites") or [])]

    def add_favorite(self, asset_id: str, *, token: Optional[CancellationToken] = None) -> AddOutcome:
        """Add a favorite; 201 means created, 200 means it was already there."""
        status, _data = self._request("POST", "/favorites", json={"asset_id": asset_id}, token=token)
        return AddOutcome.CREATED if status == 201 else AddOutcome.ALREADY_EXISTS

    def remove_favorite(self, asset_id: str, *, token: Optional[CancellationToken] = None) -> None:
        self._request("DELETE", "/favorites", params={"asset_id": asset_id}, token=token)

    @staticmethod
    def _parse(model, data):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ApiError(200, f"unexpected payload: {exc.error_count()} validation errors") from exc
