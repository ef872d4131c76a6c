"""Main entry point for running the API server."""

import logging
import sys

import uvicorn
from pydantic import ValidationError

from src.core.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the API server with uvicorn.

    Exits with status 1 when the settings are incomplete (PORT is required).
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Invalid configuration, refusing to start: {e}")
        sys.exit(1)

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
