"""Client-side list state: paging, search, filter, sort and favorites for the asset explorer.

The engine owns one `ListViewState`. Network calls go through an
`ExplorerApiClient`; every call carries the engine's cancellation token so a
closed view never applies a late response. State changes after a call only
once the call has succeeded, so a failure leaves what was already loaded
untouched.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Set

from crypto_explorer.config import settings
from crypto_explorer.errors import ApiError, OperationCancelled
from crypto_explorer.explorer.api_client import ExplorerApiClient
from crypto_explorer.explorer.cancellation import CancellationToken
from crypto_explorer.explorer.debounce import Debouncer
from crypto_explorer.explorer.list_view import FilterOption, SortOption, derive_view
from crypto_explorer.explorer.proximity import LoadMoreTrigger
from crypto_explorer.models import Asset, AssetDetail, HistoryPoint
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="explorer/engine")

Notify = Callable[[str, str], None]

INITIAL_LOAD_ERROR = "Failed to load cryptocurrency data. Please try again."
FAVORITES_LOAD_ERROR = "Failed to load favorites. Please try again."
DETAIL_LOAD_ERROR = "Failed to fetch asset details"
CHART_LOAD_ERROR = "Failed to fetch chart data"

_LEVELS = {"success": "info", "info": "info", "warning": "warning", "error": "error"}


def log_notification(level: str, message: str) -> None:
    """Default notifier: route toast-style notices to the tagged logger."""
    getattr(logger, _LEVELS.get(level, "info"))(message, extra={"notice": level})


@dataclass
class ListViewState:
    """Everything the asset list renders from; rebuilt from scratch for every new view."""
    assets: List[Asset] = field(default_factory=list)
    page: int = 1
    has_more: bool = True
    search_text: str = ""
    debounced_search: str = ""
    filter: FilterOption = FilterOption.ALL
    sort: SortOption = SortOption.DEFAULT
    favorite_ids: Set[str] = field(default_factory=set)
    loading: bool = False
    loading_more: bool = False
    error: Optional[str] = None
    pending_favorites: Set[str] = field(default_factory=set)


class ListInteractionEngine:
    """Drives the asset list: initial load, incremental paging, derived view and favorite toggles."""

    def __init__(
        self,
        client: Optional[ExplorerApiClient] = None,
        *,
        per_page: int | None = None,
        debounce_seconds: float | None = None,
        load_more_trigger: Optional[LoadMoreTrigger] = None,
        notify: Optional[Notify] = None,
    ) -> None:
        self.client = client or ExplorerApiClient()
        self.per_page = per_page or settings.page_size
        self.notify = notify or log_notification
        self.state = ListViewState()
        self.token = CancellationToken()
        self.trigger = load_more_trigger or LoadMoreTrigger(
            settings.load_more_min_interval_seconds,
            root_margin=settings.load_more_root_margin_px,
            threshold=settings.load_more_threshold,
        )
        quiet = settings.search_debounce_seconds if debounce_seconds is None else debounce_seconds
        self._debouncer: Debouncer[str] = Debouncer(quiet, self._apply_search)
        self._lock = threading.RLock()

    # -- loading -----------------------------------------------------------

    def initial_load(self) -> bool:
        """Fetch page 1 and the favorites concurrently; on failure enter the error state."""
        with self._lock:
            self.state.loading = True
            self.state.error = None

        try:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="explorer-initial") as pool:
                assets_future = pool.submit(self.client.list_assets, 1, self.per_page, token=self.token)
                favorites_future = pool.submit(self.client.list_favorites, token=self.token)
                first_page = assets_future.result()
                favorites = favorites_future.result()
        except OperationCancelled:
            logger.debug("Initial load discarded after close")
            return False
        except ApiError as exc:
            logger.error("Initial load failed: %s", exc)
            with self._lock:
                self.state.error = INITIAL_LOAD_ERROR
            return False
        finally:
            with self._lock:
                self.state.loading = False

        if self.token.cancelled:
            return False
        with self._lock:
            self.state.assets = list(first_page.assets)
            self.state.page = 1
            self.state.has_more = first_page.has_more
            self.state.favorite_ids = {f.asset_id for f in favorites}
        logger.info("Initial load complete", extra={"assets": len(first_page.assets), "favorites": len(favorites)})
        return True

    def retry(self) -> bool:
        """Re-run both initial fetches (the error state's "try again")."""
        return self.initial_load()

    def load_more(self) -> bool:
        """Fetch and append the next page; returns True if assets were appended."""
        if self.token.cancelled:
            return False
        with self._lock:
            if self.state.loading_more or not self.state.has_more:
                logger.debug(
                    "Load more skipped",
                    extra={"loading_more": self.state.loading_more, "has_more": self.state.has_more},
                )
                return False
            self.state.loading_more = True
            next_page = self.state.page + 1

        try:
            result = self.client.list_assets(next_page, self.per_page, token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            if exc.rate_limited:
                logger.warning("Rate limited while loading more", extra={"page": next_page})
                self.notify("warning", "Loading too fast, please wait a moment...")
            elif exc.status_code is not None and 200 <= exc.status_code < 300:
                self.notify("warning", "Unable to load more right now, please try again")
            else:
                logger.error("Load more failed: %s", exc)
                self.notify("error", "Failed to load more cryptocurrencies")
            return False
        finally:
            with self._lock:
                self.state.loading_more = False

        if self.token.cancelled:
            return False
        if not result.assets:
            with self._lock:
                self.state.has_more = False
            self.notify("info", "No more cryptocurrencies to load")
            return False

        with self._lock:
            self.state.assets = [*self.state.assets, *result.assets]
            self.state.page = next_page
            self.state.has_more = result.has_more
        self.notify("success", f"Loaded {len(result.assets)} more cryptocurrencies")
        return True

    @property
    def auto_load_enabled(self) -> bool:
        """Paging only runs over the unmodified provider order."""
        with self._lock:
            s = self.state
            return (
                s.has_more
                and not s.debounced_search
                and s.filter is FilterOption.ALL
                and s.sort is SortOption.DEFAULT
            )

    def on_sentinel_visible(self, near_end: bool = True) -> bool:
        """Feed one proximity signal; loads at most once per minimum interval."""
        if not self.auto_load_enabled:
            return False
        with self._lock:
            fire = self.trigger.observe(near_end, self.state.has_more, self.state.loading_more)
        return self.load_more() if fire else False

    def request_load_more(self) -> bool:
        """Manual "Load More" control; offered only where automatic paging is."""
        if not self.auto_load_enabled:
            return False
        return self.load_more()

    # -- search / filter / sort --------------------------------------------

    def set_search(self, text: str) -> None:
        """Record raw input; the view follows once typing pauses."""
        with self._lock:
            self.state.search_text = text
        self._debouncer.submit(text)

    def apply_search_now(self) -> None:
        """Skip the remaining quiet period for the pending search text."""
        self._debouncer.flush()

    def _apply_search(self, text: str) -> None:
        with self._lock:
            self.state.debounced_search = text
        logger.debug("Search applied", extra={"search": text})

    def set_filter(self, option: FilterOption | str) -> None:
        with self._lock:
            self.state.filter = FilterOption(option)

    def set_sort(self, option: SortOption | str) -> None:
        with self._lock:
            self.state.sort = SortOption(option)

    @property
    def view(self) -> List[Asset]:
        """The searched, filtered and sorted assets, recomputed from current inputs."""
        with self._lock:
            assets = list(self.state.assets)
            search, option_filter, sort = self.state.debounced_search, self.state.filter, self.state.sort
        return derive_view(assets, search, option_filter, sort)

    # -- favorites ---------------------------------------------------------

    @property
    def favorite_ids(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self.state.favorite_ids)

    def is_favorite(self, asset_id: str) -> bool:
        with self._lock:
            return asset_id in self.state.favorite_ids

    def is_pending(self, asset_id: str) -> bool:
        with self._lock:
            return asset_id in self.state.pending_favorites

    def toggle_favorite(self, asset_id: str) -> bool:
        """Add or remove a favorite; local membership flips only after the server confirms."""
        with self._lock:
            if asset_id in self.state.pending_favorites:
                return False
            self.state.pending_favorites.add(asset_id)
            was_favorite = asset_id in self.state.favorite_ids

        try:
            if was_favorite:
                self.client.remove_favorite(asset_id, token=self.token)
            else:
                self.client.add_favorite(asset_id, token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            logger.error("Favorite toggle failed: %s", exc, extra={"asset_id": asset_id})
            self.notify("error", "Failed to update favorites")
            return False
        finally:
            with self._lock:
                self.state.pending_favorites.discard(asset_id)

        if self.token.cancelled:
            return False
        with self._lock:
            if was_favorite:
                self.state.favorite_ids.discard(asset_id)
            else:
                self.state.favorite_ids.add(asset_id)
        self.notify("success", "Removed from favorites" if was_favorite else "Added to favorites")
        return True

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Cancel in-flight fetches and any pending search; the state is not reused after this."""
        self.token.cancel()
        self._debouncer.cancel()


class FavoritesView:
    """State for the favorites page: the favorited assets found in the default listing page."""

    def __init__(self, client: Optional[ExplorerApiClient] = None, *, notify: Optional[Notify] = None) -> None:
        self.client = client or ExplorerApiClient()
        self.notify = notify or log_notification
        self.assets: List[Asset] = []
        self.loading = False
        self.error: Optional[str] = None
        self.pending: Set[str] = set()
        self.token = CancellationToken()
        self._lock = threading.Lock()

    def load(self) -> bool:
        """Read favorites, then keep the listing assets whose id is favorited."""
        self.loading = True
        self.error = None
        try:
            favorites = self.client.list_favorites(token=self.token)
            ids = {f.asset_id for f in favorites}
            if not ids:
                self.assets = []
                return True
            listing = self.client.list_assets(token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            logger.error("Favorites load failed: %s", exc)
            self.error = FAVORITES_LOAD_ERROR
            return False
        finally:
            self.loading = False

        self.assets = [a for a in listing.assets if a.id in ids]
        return True

    def remove(self, asset_id: str) -> bool:
        """Unfavorite an asset and drop it from the page once the server confirms."""
        with self._lock:
            if asset_id in self.pending:
                return False
            self.pending.add(asset_id)
        try:
            self.client.remove_favorite(asset_id, token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            logger.error("Favorite removal failed: %s", exc, extra={"asset_id": asset_id})
            self.notify("error", "Failed to remove favorite")
            return False
        finally:
            with self._lock:
                self.pending.discard(asset_id)

        self.assets = [a for a in self.assets if a.id != asset_id]
        self.notify("success", "Removed from favorites")
        return True

    def close(self) -> None:
        self.token.cancel()


class AssetDetailView:
    """State for one asset's detail page: the detail record, its favorite flag and the 7-day chart.

    The detail and the chart fail independently. A chart failure leaves a
    loaded detail on screen with its own error and retry, and a failed
    favorite check only leaves the flag unset.
    """

    def __init__(
        self,
        asset_id: str,
        client: Optional[ExplorerApiClient] = None,
        *,
        notify: Optional[Notify] = None,
    ) -> None:
        self.asset_id = asset_id
        self.client = client or ExplorerApiClient()
        self.notify = notify or log_notification
        self.detail: Optional[AssetDetail] = None
        self.is_favorite = False
        self.checking_favorite = False
        self.history: List[HistoryPoint] = []
        self.loading = False
        self.error: Optional[str] = None
        self.chart_loading = False
        self.chart_error: Optional[str] = None
        self.toggling = False
        self.token = CancellationToken()
        self._lock = threading.Lock()

    def load(self) -> bool:
        """Fetch the detail and the favorite flag together, then the chart once the detail is in."""
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="explorer-detail") as pool:
            detail_future = pool.submit(self.load_detail)
            pool.submit(self.check_favorite)
            loaded = detail_future.result()
        if loaded:
            self.load_chart()
        return loaded

    def load_detail(self) -> bool:
        self.loading = True
        self.error = None
        try:
            detail = self.client.get_asset_detail(self.asset_id, token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            logger.error("Asset detail load failed: %s", exc, extra={"asset_id": self.asset_id})
            self.error = DETAIL_LOAD_ERROR
            return False
        finally:
            self.loading = False

        if self.token.cancelled:
            return False
        self.detail = detail
        return True

    def retry(self) -> bool:
        """The detail error state's "try again"; fetches the chart too if it never loaded."""
        if not self.load_detail():
            return False
        if not self.history:
            self.load_chart()
        return True

    def check_favorite(self) -> bool:
        self.checking_favorite = True
        try:
            favorites = self.client.list_favorites(token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            logger.warning("Favorite check failed: %s", exc, extra={"asset_id": self.asset_id})
            return False
        finally:
            self.checking_favorite = False

        if self.token.cancelled:
            return False
        self.is_favorite = any(f.asset_id == self.asset_id for f in favorites)
        return True

    def load_chart(self) -> bool:
        self.chart_loading = True
        self.chart_error = None
        try:
            points = self.client.get_asset_history(self.asset_id, token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            logger.error("Chart load failed: %s", exc, extra={"asset_id": self.asset_id})
            self.chart_error = CHART_LOAD_ERROR
            return False
        finally:
            self.chart_loading = False

        if self.token.cancelled:
            return False
        self.history = list(points)
        return True

    def retry_chart(self) -> bool:
        return self.load_chart()

    def toggle_favorite(self) -> bool:
        """Add or remove this asset; the flag flips only after the server confirms."""
        if self.token.cancelled:
            return False
        with self._lock:
            if self.toggling:
                return False
            self.toggling = True
            was_favorite = self.is_favorite

        try:
            if was_favorite:
                self.client.remove_favorite(self.asset_id, token=self.token)
            else:
                self.client.add_favorite(self.asset_id, token=self.token)
        except OperationCancelled:
            return False
        except ApiError as exc:
            logger.error("Favorite toggle failed: %s", exc, extra={"asset_id": self.asset_id})
            self.notify("error", "Failed to update favorites")
            return False
        finally:
            with self._lock:
                self.toggling = False

        if self.token.cancelled:
            return False
        self.is_favorite = not was_favorite
        self.notify("success", "Removed from favorites" if was_favorite else "Added to favorites")
        return True

    def close(self) -> None:
        self.token.cancel()
