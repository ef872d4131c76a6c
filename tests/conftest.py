"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator

import pytest
from litestar.testing import TestClient

from src.api.app import create_app
from src.api.services.images import ImageService
from src.core.config import Settings
from tests.fakes import InMemoryBlobStore


@pytest.fixture
def settings() -> Settings:
    """Provide test settings."""
    return Settings(
        port=8000,
        debug=True,
        aws_access_key="test_key",
        aws_secret_access_key="test_secret",
        public_bucket_name="public-bucket",
        private_bucket_name="private-bucket",
        api_prefix="poc_api",
    )


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Provide an empty in-memory blob store."""
    return InMemoryBlobStore()


@pytest.fixture
def image_service(blob_store: InMemoryBlobStore) -> ImageService:
    """Provide image service over the in-memory store."""
    return ImageService(blob_store, api_prefix="poc_api")


@pytest.fixture
def client(settings: Settings, blob_store: InMemoryBlobStore) -> Iterator[TestClient]:
    """Provide a test client for an app backed by the in-memory store."""
    app = create_app(settings, blob_store=blob_store)
    with TestClient(app=app) as test_client:
        yield test_client
