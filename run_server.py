import os

import uvicorn

from crypto_explorer.config import settings
from crypto_explorer.favorites_store import build_favorites_store
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


def prepare_favorites_schema() -> None:
    """
    Create the favorites table before the first request. Controlled by:
    - EXPLORER_SKIP_SCHEMA_INIT=true to skip (the table is managed elsewhere)
    """
    if os.getenv("EXPLORER_SKIP_SCHEMA_INIT", "false").lower() in ("1", "true", "yes"):
        logger.info("Skipping favorites schema init (EXPLORER_SKIP_SCHEMA_INIT=true)")
        return
    build_favorites_store(settings, create_schema=True)


if __name__ == "__main__":
    setup_logging(level=settings.log_level, service_name="crypto-explorer")
    prepare_favorites_schema()

    uvicorn.run(
        "crypto_explorer.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
