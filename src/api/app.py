"""Litestar application factory and configuration."""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from litestar import Litestar
from litestar.config.cors import CORSConfig
from litestar.logging import LoggingConfig
from litestar.openapi import OpenAPIConfig
from litestar.openapi.spec import Contact, Server

from src.api.dependencies import BLOB_STORE_STATE_KEY, build_blob_store, build_dependencies
from src.api.routes import HealthController, ImageController
from src.api.services.storage import BlobStore
from src.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def make_lifespan(
    settings: Settings,
    blob_store: BlobStore | None = None,
) -> Callable[[Litestar], AbstractAsyncContextManager[None]]:
    """Build the application lifespan manager.

    Args:
        settings: Application settings.
        blob_store: Store to use instead of one built from settings.
    """

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
        """Initializes the blob store on startup and closes it on shutdown."""
        store = blob_store if blob_store is not None else build_blob_store(settings)
        app.state[BLOB_STORE_STATE_KEY] = store

        logger.info(f"Starting image API service on port {settings.port}")

        try:
            yield
        finally:
            logger.info("Shutting down image API service")
            if store is not None:
                await store.close()
                logger.info("Blob store closed")
            app.state[BLOB_STORE_STATE_KEY] = None

    return lifespan


def create_app(
    settings: Settings | None = None,
    *,
    blob_store: BlobStore | None = None,
) -> Litestar:
    # sourcery skip: inline-immediately-returned-variable
    """Create and configure Litestar application.

    Args:
        settings: Settings to use instead of the environment's.
        blob_store: Store to use instead of one built from settings.

    Returns:
        Configured Litestar application instance.
    """
    settings = settings or get_settings()

    # ALLOWED_HOSTS is not enforced yet, every origin is allowed
    cors_config = CORSConfig(
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging configuration
    logging_config = LoggingConfig(
        root={
            "level": "DEBUG" if settings.debug else "INFO",
            "handlers": ["console"],
        },
        formatters={
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        handlers={
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
            },
        },
        loggers={
            "src": {
                "level": "DEBUG" if settings.debug else "INFO",
                "propagate": True,
            },
            "botocore": {
                "level": "WARNING",
                "propagate": False,
            },
            "aiobotocore": {
                "level": "WARNING",
                "propagate": False,
            },
        },
    )

    # OpenAPI documentation configuration
    openapi_config = OpenAPIConfig(
        title="Image Relay API",
        version="0.1.0",
        description="Upload, serve and delete files kept in an S3-compatible object store",
        contact=Contact(name="API Support"),
        servers=[
            Server(
                url=f"http://{settings.host}:{settings.port}",
                description="Local development server",
            ),
        ],
        path="/docs",
    )

    app = Litestar(
        route_handlers=[
            HealthController,
            ImageController,
        ],
        dependencies=build_dependencies(settings),
        lifespan=[make_lifespan(settings, blob_store)],
        cors_config=cors_config,
        logging_config=logging_config,
        openapi_config=openapi_config,
        debug=settings.debug,
        signature_types=[BlobStore],
    )

    return app
