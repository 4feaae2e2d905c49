"""Interfaces and helpers for market-data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Protocol


class MarketDataSource(Protocol):
    """Interface for anything that can serve listings, coin records and price history."""

    def fetch_markets(self, page: int, per_page: int) -> List[Dict[str, Any]]:
        """Return one page of raw listing rows, market cap descending."""
        ...

    def fetch_coin(self, asset_id: str) -> Dict[str, Any]:
        """Return the raw detail record for one asset."""
        ...

    def fetch_market_chart(self, asset_id: str, days: int) -> Dict[str, Any]:
        """Return the raw price-history payload (with a `prices` array)."""
        ...


@dataclass
class CallableMarketDataSource(MarketDataSource):
    """Wrap three callables so the provider can be swapped in tests or for another backend."""

    markets: Callable[[int, int], List[Dict[str, Any]]]
    coin: Callable[[str], Dict[str, Any]]
    market_chart: Callable[[str, int], Dict[str, Any]]

    def fetch_markets(self, page: int, per_page: int) -> List[Dict[str, Any]]:
        return self.markets(page, per_page)

    def fetch_coin(self, asset_id: str) -> Dict[str, Any]:
        return self.coin(asset_id)

    def fetch_market_chart(self, asset_id: str, days: int) -> Dict[str, Any]:
        return self.market_chart(asset_id, days)
