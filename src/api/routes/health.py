"""Health API routes."""

from collections.abc import Sequence

from litestar import Controller, get

from src.api.schemas.health import HealthResponse
from src.api.services.storage import BlobStore


class HealthController(Controller):
    """Health check endpoints."""

    path = "/health"
    tags: Sequence[str] | None = ["Health"]

    @get("/")
    async def health_check(
        self,
        blob_store: BlobStore,
    ) -> HealthResponse:
        """Check API and object store connectivity.

        Returns health status of the service and its buckets.
        """
        storage_connected = await blob_store.health_check()

        return HealthResponse(
            status="healthy" if storage_connected else "unhealthy",
            storage_connected=storage_connected,
        )
