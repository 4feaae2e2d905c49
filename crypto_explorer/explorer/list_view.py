"""Pure search, gainers/losers filter and sort over the loaded asset list.

`derive_view` is the only thing the engine renders from; it never mutates its
input and applies the three steps in a fixed order: search, filter, sort.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from crypto_explorer.models import Asset


class FilterOption(str, Enum):
    ALL = "all"
    GAINERS = "gainers"
    LOSERS = "losers"


class SortOption(str, Enum):
    DEFAULT = "default"  # provider order, market cap descending
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    CHANGE_ASC = "change-asc"
    CHANGE_DESC = "change-desc"


def apply_search(assets: Iterable[Asset], term: str) -> List[Asset]:
    """Case-insensitive substring match on name or symbol; an empty term keeps everything."""
    if not term:
        return list(assets)
    needle = term.lower()
    return [a for a in assets if needle in a.name.lower() or needle in a.symbol.lower()]


def apply_filter(assets: Iterable[Asset], option: FilterOption) -> List[Asset]:
    """Gainers are >= 0 over 24h, losers < 0."""
    option = FilterOption(option)
    if option is FilterOption.GAINERS:
        return [a for a in assets if a.price_change_percentage_24h >= 0]
    if option is FilterOption.LOSERS:
        return [a for a in assets if a.price_change_percentage_24h < 0]
    return list(assets)


def apply_sort(assets: Iterable[Asset], option: SortOption) -> List[Asset]:
    """Stable sort by price or 24h change; DEFAULT keeps the incoming order."""
    option = SortOption(option)
    if option is SortOption.PRICE_ASC:
        return sorted(assets, key=lambda a: a.current_price)
    if option is SortOption.PRICE_DESC:
        return sorted(assets, key=lambda a: a.current_price, reverse=True)
    if option is SortOption.CHANGE_ASC:
        return sorted(assets, key=lambda a: a.price_change_percentage_24h)
    if option is SortOption.CHANGE_DESC:
        return sorted(assets, key=lambda a: a.price_change_percentage_24h, reverse=True)
    return list(assets)


def derive_view(
    assets: Iterable[Asset],
    search: str = "",
    option_filter: FilterOption = FilterOption.ALL,
    sort: SortOption = SortOption.DEFAULT,
) -> List[Asset]:
    """Search, then filter, then sort; returns a new list."""
    return apply_sort(apply_filter(apply_search(assets, search), option_filter), sort)
