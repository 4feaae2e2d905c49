"""Pydantic schemas for assets, price history and favorites as served by the API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Asset(BaseModel):
    """One row of the market listing."""
    id: str
    name: str
    symbol: str
    image: str = ""
    current_price: float = 0
    price_change_percentage_24h: float = 0
    market_cap: Optional[float] = None
    total_volume: Optional[float] = None


class AssetPage(BaseModel):
    """A page of the listing plus the pagination it was fetched with."""
    model_config = ConfigDict(populate_by_name=True)

    assets: List[Asset]
    page: int
    per_page: int = Field(alias="perPage")
    has_more: bool = Field(alias="hasMore")


class AssetDetail(BaseModel):
    """Everything the detail view shows for a single asset."""
    id: str
    name: str
    symbol: str
    image: str = ""
    current_price: float = 0
    price_change_percentage_24h: float = 0
    market_cap: float = 0
    market_cap_rank: Optional[int] = None
    total_volume: float = 0
    price_change_percentage_7d: float = 0
    price_change_percentage_30d: float = 0
    circulating_supply: float = 0
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None
    ath: float = 0
    ath_change_percentage: float = 0
    ath_date: Optional[str] = None
    atl: float = 0
    atl_change_percentage: float = 0
    atl_date: Optional[str] = None
    high_24h: float = 0
    low_24h: float = 0
    description: str = ""
    homepage: str = ""
    blockchain_site: str = ""
    categories: List[str] = Field(default_factory=list)


class HistoryPoint(BaseModel):
    """A (timestamp in epoch milliseconds, USD price) pair."""
    timestamp: int
    price: float


class Favorite(BaseModel):
    """A persisted favorite; `asset_id` is unique across the table."""
    id: str
    asset_id: str
    created_at: datetime
