"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the crypto explorer service and list engine."""
    model_config = SettingsConfigDict(env_prefix="EXPLORER_", extra="ignore")

    # market-data provider
    market_data_source: str = "coingecko"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str | None = None
    request_timeout_seconds: float = 10.0
    history_days: int = 7

    # response caches
    cache_backend: str = "memory"  # options: memory, redis
    cache_redis_url: str | None = None
    list_cache_ttl_seconds: int = 60
    list_cache_max_entries: int = 10
    detail_cache_ttl_seconds: int = 300
    history_cache_ttl_seconds: int = 300

    # pagination
    default_page: int = 1
    default_per_page: int = 10
    max_per_page: int = 250

    # favorites persistence
    favorites_backend: str = "sql"  # options: sql, memory
    favorites_database_url: str = "sqlite:///./favorites.db"

    # http api
    api_key: str | None = None

    # list engine
    api_base_url: str = "http://localhost:8000/api"
    page_size: int = 10
    search_debounce_seconds: float = 0.3
    load_more_min_interval_seconds: float = 0.5
    load_more_root_margin_px: int = 200
    load_more_threshold: float = 0.1

    log_level: str = "INFO"

    @field_validator("coingecko_base_url", "api_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
