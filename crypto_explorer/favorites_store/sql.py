"""SQL-backed favorites store.

One table, `favorites(id, asset_id unique, created_at)`, matching the schema the
hosted Postgres deployment uses. Any SQLAlchemy URL works; SQLite is the local
default.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy import Column, DateTime, MetaData, String, Table, Text, create_engine, delete, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from crypto_explorer.errors import FavoritesOperationError
from crypto_explorer.favorites_store.base import AddOutcome, AddResult, FavoritesStore, require_asset_id
from crypto_explorer.models import Favorite
from utils.logging_utils import get_tagged_logger, mask_db_url

logger = get_tagged_logger(__name__, tag="favorites_store/sql")

metadata = MetaData()

favorites_table = Table(
    "favorites",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("asset_id", Text, nullable=False, unique=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlFavoritesStore(FavoritesStore):
    """Favorites persisted through SQLAlchemy Core."""

    def __init__(self, engine: Engine, *, clock: Callable[[], datetime] = _utcnow) -> None:
        """Bind to an engine; `clock` supplies created_at values."""
        self.engine = engine
        self.clock = clock

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "SqlFavoritesStore":
        """Create an engine from a URL and build the store."""
        logger.info("Connecting favorites store", extra={"db_url": mask_db_url(database_url)})
        engine = create_engine(database_url, future=True)
        return cls(engine, **kwargs)

    def create_schema(self) -> None:
        """Create the favorites table if it does not exist."""
        metadata.create_all(self.engine)

    @staticmethod
    def _row_to_favorite(row) -> Favorite:
        return Favorite(id=row.id, asset_id=row.asset_id, created_at=row.created_at)

    def _find(self, asset_id: str) -> Optional[Favorite]:
        query = select(favorites_table).where(favorites_table.c.asset_id == asset_id)
        with self.engine.connect() as conn:
            row = conn.execute(query).first()
        return self._row_to_favorite(row) if row is not None else None

    def list(self) -> List[Favorite]:
        """Return every favorite ordered by created_at, newest first."""
        query = select(favorites_table).order_by(favorites_table.c.created_at.desc())
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to list favorites: %s", exc)
            raise FavoritesOperationError("list", str(exc)) from exc
        return [self._row_to_favorite(row) for row in rows]

    def add(self, asset_id: str) -> AddResult:
        """Insert a favorite; the unique constraint turns a repeat into ALREADY_EXISTS."""
        asset_id = require_asset_id(asset_id)
        favorite = Favorite(id=str(uuid.uuid4()), asset_id=asset_id, created_at=self.clock())
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(favorites_table).values(**favorite.model_dump()))
        except IntegrityError as exc:
            try:
                existing = self._find(asset_id)
            except SQLAlchemyError as lookup_exc:
                raise FavoritesOperationError("add", str(lookup_exc)) from lookup_exc
            if existing is None:
                logger.error("Favorite insert violated a constraint: %s", exc)
                raise FavoritesOperationError("add", str(exc)) from exc
            logger.debug("Asset already in favorites", extra={"asset_id": asset_id})
            return AddResult(AddOutcome.ALREADY_EXISTS, existing)
        except SQLAlchemyError as exc:
            logger.error("Failed to add favorite: %s", exc)
            raise FavoritesOperationError("add", str(exc)) from exc

        logger.info("Added favorite", extra={"asset_id": asset_id})
        return AddResult(AddOutcome.CREATED, favorite)

    def remove(self, asset_id: str) -> None:
        """Delete by asset id without checking whether a row matched."""
        asset_id = require_asset_id(asset_id)
        try:
            with self.engine.begin() as conn:
                conn.execute(delete(favorites_table).where(favorites_table.c.asset_id == asset_id))
        except SQLAlchemyError as exc:
            logger.error("Failed to remove favorite: %s", exc)
            raise FavoritesOperationError("remove", str(exc)) from exc
        logger.info("Removed favorite", extra={"asset_id": asset_id})

    def clear(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(delete(favorites_table))
        except SQLAlchemyError as exc:
            raise FavoritesOperationError("clear", str(exc)) from exc
