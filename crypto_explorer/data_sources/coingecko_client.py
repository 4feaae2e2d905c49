"""Helpers for fetching listings, coin details and price history from the CoinGecko API."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping
from urllib.parse import quote

import requests

from crypto_explorer.config import settings
from crypto_explorer.errors import FetchFailedError
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="coingecko_client")

session = requests.Session()

VS_CURRENCY = "usd"
MARKETS_PATH = "/coins/markets"
COIN_PATH = "/coins/{id}"
MARKET_CHART_PATH = "/coins/{id}/market_chart"


def _headers() -> Dict[str, str]:
    """Request headers, including the demo API key when one is configured."""
    headers = {"Accept": "application/json"}
    if settings.coingecko_api_key:
        headers["x-cg-demo-api-key"] = settings.coingecko_api_key
    return headers


def _get_json(path: str, params: Mapping[str, Any], *, resource: str) -> Any:
    """GET a provider path and return parsed JSON; every failure becomes FetchFailedError."""
    url = f"{settings.coingecko_base_url}{path}"
    try:
        resp = session.get(url, params=dict(params), headers=_headers(), timeout=settings.request_timeout_seconds)
    except requests.exceptions.RequestException as exc:
        logger.warning("CoinGecko request failed", extra={"url": url, "error": str(exc)})
        raise FetchFailedError(resource, reason=str(exc)) from exc

    if not 200 <= resp.status_code < 300:
        logger.warning("CoinGecko returned non-success status", extra={"url": url, "status": resp.status_code})
        raise FetchFailedError(resource, status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as exc:
        logger.warning("CoinGecko returned non-JSON body", extra={"url": url})
        raise FetchFailedError(resource, reason="invalid JSON") from exc


def fetch_markets(page: int, per_page: int) -> List[Dict[str, Any]]:
    """Fetch one page of assets ordered by market cap, descending."""
    params = {
        "vs_currency": VS_CURRENCY,
        "order": "market_cap_desc",
        "per_page": per_page,
        "page": page,
        "sparkline": "false",
    }
    data = _get_json(MARKETS_PATH, params, resource="crypto assets")
    if not isinstance(data, list):
        raise FetchFailedError("crypto assets", reason="expected a JSON array")
    return data


def fetch_coin(asset_id: str) -> Dict[str, Any]:
    """Fetch the full record for one asset, without tickers or community/developer data."""
    params = {
        "localization": "false",
        "tickers": "false",
        "community_data": "false",
        "developer_data": "false",
        "sparkline": "false",
    }
    data = _get_json(COIN_PATH.format(id=quote(asset_id, safe="")), params, resource="asset details")
    if not isinstance(data, dict):
        raise FetchFailedError("asset details", reason="expected a JSON object")
    return data


def fetch_market_chart(asset_id: str, days: int) -> Dict[str, Any]:
    """Fetch `days` of daily USD prices for one asset."""
    params = {"vs_currency": VS_CURRENCY, "days": days, "interval": "daily"}
    data = _get_json(MARKET_CHART_PATH.format(id=quote(asset_id, safe="")), params, resource="chart data")
    if not isinstance(data, dict):
        raise FetchFailedError("chart data", reason="expected a JSON object")
    return data
