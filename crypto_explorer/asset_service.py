"""Cached listing, detail and price-history lookups in front of the market-data source."""
from __future__ import annotations

import math
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import redis
from pydantic import ValidationError

from crypto_explorer import config
from crypto_explorer.data_sources import MarketDataSource, build_market_data_source
from crypto_explorer.errors import FetchFailedError
from crypto_explorer.models import Asset, AssetDetail, AssetPage, HistoryPoint
from crypto_explorer.response_cache import (
    InMemoryResponseCache,
    RedisResponseCache,
    ResponseCache,
    SingleFlight,
    cached_fetch,
)
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="asset_service")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _parse_int(raw: Any) -> Optional[int]:
    """Parse a leading integer the way a query-string parser would; None when there is none."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    match = _LEADING_INT.match(str(raw))
    return int(match.group(1)) if match else None


def parse_pagination(
    raw_page: Any = None,
    raw_per_page: Any = None,
    *,
    default_page: int = 1,
    default_per_page: int = 10,
    max_per_page: int = 250,
) -> Tuple[int, int]:
    """
    Normalize raw page/per_page input.

    Unparseable values fall back to the defaults; page is raised to at least 1 and
    per_page is clamped into [1, max_per_page].
    """
    page = _parse_int(raw_page)
    per_page = _parse_int(raw_per_page)
    page = default_page if page is None else max(1, page)
    per_page = default_per_page if per_page is None else min(max_per_page, max(1, per_page))
    return page, per_page


def first_non_empty(values: Optional[Iterable[Any]]) -> Optional[str]:
    """Return the first truthy, non-blank string in `values`, or None."""
    for value in values or ():
        if isinstance(value, str) and value.strip():
            return value
    return None


def _number(value: Any, default: float = 0) -> float:
    """Coerce a provider number, treating missing or non-numeric values as `default`."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _optional_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _usd(section: Dict[str, Any], field: str) -> Any:
    """Read `section[field]["usd"]`, tolerating missing levels."""
    value = section.get(field) or {}
    return value.get("usd") if isinstance(value, dict) else None


def normalize_market_asset(row: Dict[str, Any]) -> Asset:
    """Map one `/coins/markets` row onto the listing shape."""
    return Asset(
        id=row["id"],
        name=row.get("name") or row["id"],
        symbol=row.get("symbol") or "",
        image=row.get("image") or "",
        current_price=_number(row.get("current_price")),
        price_change_percentage_24h=_number(row.get("price_change_percentage_24h")),
        market_cap=_optional_number(row.get("market_cap")),
        total_volume=_optional_number(row.get("total_volume")),
    )


def normalize_asset_detail(data: Dict[str, Any]) -> AssetDetail:
    """Map a `/coins/{id}` record onto the detail shape."""
    market = data.get("market_data") or {}
    image = data.get("image") or {}
    links = data.get("links") or {}
    description = data.get("description") or {}

    return AssetDetail(
        id=data["id"],
        symbol=data.get("symbol") or "",
        name=data.get("name") or data["id"],
        image=image.get("large") or image.get("small") or "",
        current_price=_number(_usd(market, "current_price")),
        market_cap=_number(_usd(market, "market_cap")),
        market_cap_rank=data.get("market_cap_rank"),
        total_volume=_number(_usd(market, "total_volume")),
        price_change_percentage_24h=_number(market.get("price_change_percentage_24h")),
        price_change_percentage_7d=_number(market.get("price_change_percentage_7d")),
        price_change_percentage_30d=_number(market.get("price_change_percentage_30d")),
        circulating_supply=_number(market.get("circulating_supply")),
        total_supply=_optional_number(market.get("total_supply")),
        max_supply=_optional_number(market.get("max_supply")),
        ath=_number(_usd(market, "ath")),
        ath_change_percentage=_number(_usd(market, "ath_change_percentage")),
        ath_date=_usd(market, "ath_date"),
        atl=_number(_usd(market, "atl")),
        atl_change_percentage=_number(_usd(market, "atl_change_percentage")),
        atl_date=_usd(market, "atl_date"),
        high_24h=_number(_usd(market, "high_24h")),
        low_24h=_number(_usd(market, "low_24h")),
        description=description.get("en") or "",
        homepage=first_non_empty(links.get("homepage")) or "",
        blockchain_site=first_non_empty(links.get("blockchain_site")) or "",
        categories=[c for c in (data.get("categories") or []) if isinstance(c, str)],
    )


def normalize_history(payload: Dict[str, Any]) -> List[HistoryPoint]:
    """Turn `prices: [[ms, price], ...]` into ordered history points."""
    prices = payload.get("prices")
    if not isinstance(prices, list):
        raise FetchFailedError("chart data", reason="missing prices array")
    points = [HistoryPoint(timestamp=int(ts), price=float(price)) for ts, price in prices]
    return sorted(points, key=lambda p: p.timestamp)


def _normalized(resource: str, build: Callable[[], Any]) -> Any:
    """Run a normalizer, reporting malformed provider payloads as fetch failures."""
    try:
        return build()
    except (KeyError, TypeError, ValueError, ValidationError, AttributeError) as exc:
        logger.warning("Unexpected provider payload", extra={"resource": resource, "error": str(exc)})
        raise FetchFailedError(resource, reason="unexpected payload") from exc


class AssetService:
    """The three fetchers: listing pages, asset detail and price history, each behind its own cache."""

    def __init__(
        self,
        data_source: MarketDataSource,
        *,
        list_cache: ResponseCache,
        detail_cache: ResponseCache,
        history_cache: ResponseCache,
        list_cache_max_entries: Optional[int] = 10,
        history_days: int = 7,
        default_page: int = 1,
        default_per_page: int = 10,
        max_per_page: int = 250,
    ) -> None:
        self.data_source = data_source
        self.list_cache = list_cache
        self.detail_cache = detail_cache
        self.history_cache = history_cache
        # one lock registry per cache: detail and history share asset-id keys
        self.list_flight = SingleFlight()
        self.detail_flight = SingleFlight()
        self.history_flight = SingleFlight()
        self.list_cache_max_entries = list_cache_max_entries
        self.history_days = history_days
        self.default_page = default_page
        self.default_per_page = default_per_page
        self.max_per_page = max_per_page

    def list_assets(self, raw_page: Any = None, raw_per_page: Any = None) -> AssetPage:
        """Return a listing page; `has_more` is true when the page came back full."""
        page, per_page = parse_pagination(
            raw_page,
            raw_per_page,
            default_page=self.default_page,
            default_per_page=self.default_per_page,
            max_per_page=self.max_per_page,
        )

        def load() -> List[Dict[str, Any]]:
            logger.info("Fetching assets page from provider", extra={"page": page, "per_page": per_page})
            rows = self.data_source.fetch_markets(page, per_page)
            return _normalized(
                "crypto assets",
                lambda: [normalize_market_asset(row).model_dump() for row in rows],
            )

        rows = cached_fetch(
            self.list_cache,
            f"{page}-{per_page}",
            load,
            flight=self.list_flight,
            max_entries=self.list_cache_max_entries,
        )
        assets = [Asset.model_validate(row) for row in rows]
        return AssetPage(assets=assets, page=page, per_page=per_page, has_more=len(assets) == per_page)

    def get_asset_detail(self, asset_id: str) -> AssetDetail:
        """Return the detail record for one asset."""

        def load() -> Dict[str, Any]:
            logger.info("Fetching asset detail from provider", extra={"asset_id": asset_id})
            data = self.data_source.fetch_coin(asset_id)
            return _normalized("asset details", lambda: normalize_asset_detail(data).model_dump())

        data = cached_fetch(self.detail_cache, asset_id, load, flight=self.detail_flight)
        return AssetDetail.model_validate(data)

    def get_asset_history(self, asset_id: str) -> List[HistoryPoint]:
        """Return daily prices over the configured lookback window, oldest first."""

        def load() -> List[Dict[str, Any]]:
            logger.info("Fetching price history from provider", extra={"asset_id": asset_id, "days": self.history_days})
            payload = self.data_source.fetch_market_chart(asset_id, self.history_days)
            return _normalized(
                "chart data",
                lambda: [point.model_dump() for point in normalize_history(payload)],
            )

        points = cached_fetch(self.history_cache, asset_id, load, flight=self.history_flight)
        return [HistoryPoint.model_validate(point) for point in points]


def _redis_client(url: str):
    """Connect to Redis, returning None if it cannot be reached or the URL is malformed."""
    try:
        client = redis.Redis.from_url(url)
        client.ping()
        return client
    except (redis.exceptions.RedisError, ValueError) as exc:
        logger.warning("Redis unavailable for response caches; using in-memory caches", extra={"error": str(exc)})
        return None


def _build_cache(name: str, ttl_seconds: int, client) -> ResponseCache:
    if client is not None:
        return RedisResponseCache(client, ttl_seconds=ttl_seconds, prefix=f"explorer:{name}:")
    return InMemoryResponseCache(ttl_seconds=ttl_seconds, name=name)


def build_asset_service(
    settings: config.Settings | None = None,
    data_source: MarketDataSource | None = None,
) -> AssetService:
    """Wire the data source and one cache per fetcher according to configuration."""
    settings = settings or config.settings
    backend = (settings.cache_backend or "memory").lower()
    if backend not in ("memory", "redis"):
        raise ValueError(f"Unknown cache backend '{backend}'")

    client = None
    if backend == "redis":
        if not settings.cache_redis_url:
            raise ValueError("cache_redis_url must be set for the redis cache backend")
        client = _redis_client(settings.cache_redis_url)
    logger.info("Building response caches", extra={"backend": "redis" if client is not None else "memory"})

    return AssetService(
        data_source or build_market_data_source(settings),
        list_cache=_build_cache("assets", settings.list_cache_ttl_seconds, client),
        detail_cache=_build_cache("detail", settings.detail_cache_ttl_seconds, client),
        history_cache=_build_cache("chart", settings.history_cache_ttl_seconds, client),
        list_cache_max_entries=settings.list_cache_max_entries,
        history_days=settings.history_days,
        default_page=settings.default_page,
        default_per_page=settings.default_per_page,
        max_per_page=settings.max_per_page,
    )
