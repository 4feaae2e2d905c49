"""Market-data sources and the factory that picks one."""

from .base import CallableMarketDataSource, MarketDataSource
from .factory import build_market_data_source
from .coingecko_client import fetch_coin, fetch_market_chart, fetch_markets

__all__ = [
    "build_market_data_source",
    "MarketDataSource",
    "CallableMarketDataSource",
    "fetch_coin",
    "fetch_market_chart",
    "fetch_markets",
]
