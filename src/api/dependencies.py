"""Dependency injection providers for Litestar."""

from __future__ import annotations

import logging

from litestar.datastructures import State
from litestar.di import Provide

from src.api.services.images import ImageService
from src.api.services.storage import BlobStore, S3StorageService, S3StorageSettings
from src.core.config import Settings

logger = logging.getLogger(__name__)

BLOB_STORE_STATE_KEY = "blob_store"


# -----------------------------------------------------------------------------
# Storage dependencies
# -----------------------------------------------------------------------------


def build_blob_store(settings: Settings) -> BlobStore | None:
    """Create the S3 blob store described by the settings.

    Returns:
        Configured store, or None if storage is not configured.
    """
    if not settings.storage_configured:
        logger.warning("Object storage not configured - image endpoints will be unavailable")
        return None

    s3_settings = S3StorageSettings(
        access_key_id=settings.aws_access_key,
        secret_access_key=settings.aws_secret_access_key,
        region=settings.buckets_region,
        buckets=settings.buckets,
        endpoint_url=settings.s3_endpoint_url,
        public_url_base=settings.public_url_base,
    )
    logger.info(
        f"S3 storage initialized (public={settings.public_bucket}, "
        f"private={settings.private_bucket}, region={settings.buckets_region})"
    )
    return S3StorageService(s3_settings)


async def get_blob_store(state: State) -> BlobStore:
    """Provide the blob store held in application state.

    Returns:
        Process-wide blob store.

    Raises:
        RuntimeError: If storage not initialized.
    """
    store = state.get(BLOB_STORE_STATE_KEY)
    if store is None:
        raise RuntimeError("Blob store not initialized")
    return store


def build_dependencies(settings: Settings) -> dict[str, Provide]:
    """Build the dependency providers for an application.

    Args:
        settings: Application settings, shared read-only by every request.

    Returns:
        Dependency mapping for the Litestar app.
    """

    def provide_settings() -> Settings:
        return settings

    async def get_image_service(blob_store: BlobStore) -> ImageService:
        """Provide image service for request scope."""
        return ImageService(
            blob_store,
            api_prefix=settings.api_prefix,
            key_prefixes=settings.key_prefixes,
            object_acl=settings.object_acl,
            page_size=settings.list_page_size,
        )

    return {
        "settings": Provide(provide_settings, sync_to_thread=False),
        "blob_store": Provide(get_blob_store),
        "image_service": Provide(get_image_service),
    }
