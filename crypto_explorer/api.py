"""HTTP API for asset listings, asset detail, price history and favorites."""

import hmac
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from .asset_service import AssetService, build_asset_service
from .config import settings
from .errors import FavoritesOperationError, FavoritesValidationError, FetchFailedError
from .favorites_store import FavoritesStore, build_favorites_store
from .models import AssetDetail, AssetPage, Favorite, HistoryPoint
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured static key, if any."""
    if not settings.api_key:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


@lru_cache(maxsize=1)
def get_asset_service() -> AssetService:
    """Process-wide asset service; its caches are shared by every request."""
    return build_asset_service(settings)


@lru_cache(maxsize=1)
def get_favorites_store() -> FavoritesStore:
    """Process-wide favorites store."""
    return build_favorites_store(settings)


class FavoritesResponse(BaseModel):
    """All favorites, newest first."""
    favorites: List[Favorite]


class FavoriteCreatedResponse(BaseModel):
    """Body for a fresh insert."""
    favorite: Favorite


class MessageResponse(BaseModel):
    """Plain acknowledgement body."""
    message: str


@router.get("/assets", response_model=AssetPage)
def list_assets(
    page: Optional[str] = Query(default=None),
    per_page: Optional[str] = Query(default=None),
    service: AssetService = Depends(get_asset_service),
):
    """Return one page of assets ordered by market cap."""
    try:
        return service.list_assets(page, per_page)
    except FetchFailedError as exc:
        logger.error("Error fetching crypto assets: %s", exc)
        # 429 is passed through so clients can back off instead of treating it as fatal
        code = status.HTTP_429_TOO_MANY_REQUESTS if exc.rate_limited else status.HTTP_500_INTERNAL_SERVER_ERROR
        raise HTTPException(status_code=code, detail="Failed to fetch crypto assets")


@router.get("/assets/{asset_id}", response_model=AssetDetail)
def get_asset_detail(asset_id: str, service: AssetService = Depends(get_asset_service)):
    """Return the detail record for one asset."""
    try:
        return service.get_asset_detail(asset_id)
    except FetchFailedError as exc:
        logger.error("Error fetching asset details: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch asset details")


@router.get("/assets/{asset_id}/chart", response_model=List[HistoryPoint])
def get_asset_chart(asset_id: str, service: AssetService = Depends(get_asset_service)):
    """Return the daily price history for one asset."""
    try:
        return service.get_asset_history(asset_id)
    except FetchFailedError as exc:
        logger.error("Error fetching chart data: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch chart data")


@router.get("/favorites", response_model=FavoritesResponse)
def list_favorites(store: FavoritesStore = Depends(get_favorites_store)):
    """Return every favorite, newest first."""
    try:
        return FavoritesResponse(favorites=store.list())
    except FavoritesOperationError as exc:
        logger.error("Error fetching favorites: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch favorites")


@router.post(
    "/favorites",
    status_code=status.HTTP_201_CREATED,
    response_model=FavoriteCreatedResponse | MessageResponse,
)
async def add_favorite(request: Request, response: Response, store: FavoritesStore = Depends(get_favorites_store)):
    """Add a favorite; re-adding an existing one answers 200 instead of 201."""
    try:
        body = await request.json()
    except ValueError as exc:
        logger.error("Error adding favorite: malformed body: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to add favorite")

    asset_id = body.get("asset_id") if isinstance(body, dict) else None
    try:
        result = await run_in_threadpool(store.add, asset_id)
    except FavoritesValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except FavoritesOperationError as exc:
        logger.error("Error adding favorite: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to add favorite")

    if not result.created:
        response.status_code = status.HTTP_200_OK
        return MessageResponse(message="Asset already in favorites")
    return FavoriteCreatedResponse(favorite=result.favorite)


@router.delete("/favorites", response_model=MessageResponse)
def remove_favorite(
    asset_id: Optional[str] = Query(default=None),
    store: FavoritesStore = Depends(get_favorites_store),
):
    """Remove a favorite; removing one that does not exist still succeeds."""
    try:
        store.remove(asset_id)
    except FavoritesValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except FavoritesOperationError as exc:
        logger.error("Error removing favorite: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to remove favorite")
    return MessageResponse(message="Favorite removed successfully")
