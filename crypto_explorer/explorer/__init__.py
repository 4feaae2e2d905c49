"""Client-side list engine for browsing assets and managing favorites."""

from .api_client import ExplorerApiClient
from .cancellation import CancellationToken
from .debounce import Debouncer, debounce
from .engine import AssetDetailView, FavoritesView, ListInteractionEngine, ListViewState
from .list_view import FilterOption, SortOption, apply_filter, apply_search, apply_sort, derive_view
from .proximity import LoadMoreTrigger, intersection_ratio

__all__ = [
    "ExplorerApiClient",
    "CancellationToken",
    "Debouncer",
    "debounce",
    "AssetDetailView",
    "FavoritesView",
    "ListInteractionEngine",
    "ListViewState",
    "FilterOption",
    "SortOption",
    "apply_filter",
    "apply_search",
    "apply_sort",
    "derive_view",
    "LoadMoreTrigger",
    "intersection_ratio",
]
