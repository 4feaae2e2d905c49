"""Factory helpers for choosing a market-data source at startup."""

from __future__ import annotations

from crypto_explorer import config
from crypto_explorer.data_sources import coingecko_client
from crypto_explorer.data_sources.base import CallableMarketDataSource, MarketDataSource
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "coingecko"


def build_market_data_source(settings: config.Settings | None = None) -> MarketDataSource:
    """Instantiate the configured market-data source."""
    settings = settings or config.settings
    source = (settings.market_data_source or DEFAULT_SOURCE_NAME).lower()

    if source == "coingecko":
        logger.info("Using CoinGecko market data source")
        return CallableMarketDataSource(
            markets=coingecko_client.fetch_markets,
            coin=coingecko_client.fetch_coin,
            market_chart=coingecko_client.fetch_market_chart,
        )

    raise ValueError(f"Unknown market data source '{source}'")
