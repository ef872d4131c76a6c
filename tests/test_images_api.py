"""Tests for the image HTTP endpoints."""

from __future__ import annotations

import pytest
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)
from litestar.testing import TestClient

from src.api.routes.images import StreamRelay
from src.api.services.storage import StorageListError
from src.core.enums import StorageLocation
from tests.fakes import JPEG_BYTES, PNG_BYTES, InMemoryBlobStore


def _upload(client: TestClient, filename: str, data: bytes, upload_type: str | None = None):
    params = {"type": upload_type} if upload_type is not None else {}
    return client.post(
        "/upload-image",
        files={"file": (filename, data, "application/octet-stream")},
        params=params,
    )


class TestUploadEndpoint:
    """Tests for POST /upload-image."""

    def test_public_upload(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test a public upload returns the full result payload."""
        response = _upload(client, "holiday.photo.png", PNG_BYTES)

        assert response.status_code == HTTP_200_OK
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "File is uploaded"
        assert body["bytes"] == len(PNG_BYTES)
        assert body["format"] == "png"
        assert body["mime"] == "image/png"
        assert body["original_filename"] == "holiday.photo"
        assert body["original_extension"] == "png"
        assert body["etag"]

        key = f"{body['public_id']}.{body['format']}"
        assert key in blob_store.objects[StorageLocation.PUBLIC]
        assert body["url"] == blob_store.public_url(StorageLocation.PUBLIC, key)

    def test_private_upload(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test a private upload returns a proxied URL."""
        response = _upload(client, "scan.png", PNG_BYTES, upload_type="private")

        body = response.json()
        filename = f"{body['public_id']}.png"
        assert body["url"] == f"/poc_api/image/{filename}"
        assert filename in blob_store.objects[StorageLocation.PRIVATE]

    def test_unknown_type_is_public(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test any type other than private stores publicly."""
        response = _upload(client, "a.png", PNG_BYTES, upload_type="secret")

        body = response.json()
        assert f"{body['public_id']}.png" in blob_store.objects[StorageLocation.PUBLIC]

    def test_fallback_format(self, client: TestClient) -> None:
        """Test signature-less files keep their filename extension."""
        response = _upload(client, "legacy.doc", b"old word document")

        body = response.json()
        assert body["format"] == "doc"
        assert body["mime"] == "application/octet-stream"

    def test_no_file(self, client: TestClient) -> None:
        """Test a request without a file gets an error payload."""
        response = client.post("/upload-image")

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"status": "error", "message": "No file uploaded"}

    def test_json_body(self, client: TestClient) -> None:
        """Test a JSON body is answered like a missing file."""
        response = client.post("/upload-image", json={"x": 1})

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"status": "error", "message": "No file uploaded"}

    def test_urlencoded_body(self, client: TestClient) -> None:
        """Test a form body without file parts is answered like a missing file."""
        response = client.post("/upload-image", data={"file": "not-a-file"})

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"status": "error", "message": "No file uploaded"}

    def test_repeated_file_field_uses_first(
        self,
        client: TestClient,
        blob_store: InMemoryBlobStore,
    ) -> None:
        """Test only the first of several file parts is stored."""
        response = client.post(
            "/upload-image",
            files=[
                ("file", ("first.png", PNG_BYTES, "image/png")),
                ("file", ("second.jpg", JPEG_BYTES, "image/jpeg")),
            ],
        )

        body = response.json()
        assert body["status"] == "success"
        assert body["original_filename"] == "first"
        assert list(blob_store.objects[StorageLocation.PUBLIC]) == [f"{body['public_id']}.png"]

    def test_wrong_field_name(self, client: TestClient) -> None:
        """Test a file under another field name counts as missing."""
        response = client.post(
            "/upload-image",
            files={"image": ("a.png", PNG_BYTES, "image/png")},
        )

        assert response.json() == {"status": "error", "message": "No file uploaded"}

    def test_invalid_filename(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test a filename without extension is a server error."""
        response = _upload(client, "no_extension", PNG_BYTES)

        assert response.status_code == HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["status"] == "error"
        assert blob_store.calls == []

    def test_backend_failure(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test store failures are reported in the body with HTTP 200."""
        blob_store.fail_put = True

        response = _upload(client, "a.png", PNG_BYTES)

        assert response.status_code == HTTP_200_OK
        body = response.json()
        assert body["status"] == "error"
        assert "Access Denied" in body["message"]


class TestGetEndpoint:
    """Tests for GET /image/{name}."""

    def test_round_trip(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test private uploads are streamed back unchanged."""
        body = _upload(client, "a.png", PNG_BYTES, upload_type="private").json()

        response = client.get(f"/image/{body['public_id']}.png")

        assert response.status_code == HTTP_200_OK
        assert response.content == PNG_BYTES
        assert response.headers["content-type"].startswith("image/png")
        assert blob_store.closed_streams == 1

    def test_not_found(self, client: TestClient) -> None:
        """Test unknown names get a 404 payload."""
        response = client.get("/image/missing.png")

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json() == {"status": "error", "message": "File not found"}

    def test_public_objects_not_proxied(
        self,
        client: TestClient,
        blob_store: InMemoryBlobStore,
    ) -> None:
        """Test public objects are not served through the service."""
        blob_store.add(StorageLocation.PUBLIC, "pub.png", PNG_BYTES, "image/png")

        response = client.get("/image/pub.png")

        assert response.status_code == HTTP_404_NOT_FOUND


class TestDeleteEndpoint:
    """Tests for DELETE /image/{name}."""

    def test_delete_private(self, client: TestClient) -> None:
        """Test a deleted private object is no longer retrievable."""
        body = _upload(client, "a.png", PNG_BYTES, upload_type="private").json()
        name = f"{body['public_id']}.png"

        response = client.delete(f"/image/{name}")

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "success"
        assert client.get(f"/image/{name}").status_code == HTTP_404_NOT_FOUND

    def test_delete_public(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test public objects are deleted after the private probe misses."""
        body = _upload(client, "a.png", PNG_BYTES).json()
        name = f"{body['public_id']}.png"

        response = client.delete(f"/image/{name}")

        assert response.json()["status"] == "success"
        assert name not in blob_store.objects[StorageLocation.PUBLIC]

    def test_delete_missing(self, client: TestClient) -> None:
        """Test deleting an unknown name does not report success."""
        response = client.delete("/image/missing.png")

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json() == {"status": "error", "message": "File not found"}

    def test_delete_failure(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test store failures are reported in the body with HTTP 200."""
        blob_store.add(StorageLocation.PRIVATE, "a.png")
        blob_store.fail_delete = True

        response = client.delete("/image/a.png")

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "error"


class TestListEndpoint:
    """Tests for GET /objects/list."""

    def test_list(self, client: TestClient, blob_store: InMemoryBlobStore) -> None:
        """Test keys of both locations are returned."""
        blob_store.page_size = 1
        blob_store.add(StorageLocation.PUBLIC, "a.png")
        blob_store.add(StorageLocation.PUBLIC, "b.png")
        blob_store.add(StorageLocation.PRIVATE, "c.png")

        response = client.get("/objects/list")

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"publicKeys": ["a.png", "b.png"], "privateKeys": ["c.png"]}

    def test_list_empty(self, client: TestClient) -> None:
        """Test empty locations list as empty arrays."""
        response = client.get("/objects/list")

        assert response.json() == {"publicKeys": [], "privateKeys": []}

    def test_list_failure(
        self,
        client: TestClient,
        blob_store: InMemoryBlobStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test listing failures are reported in the body with HTTP 200."""

        async def fail(*args: object, **kwargs: object) -> None:
            raise StorageListError("Failed to list files: Access Denied")

        monkeypatch.setattr(blob_store, "list_page", fail)

        response = client.get("/objects/list")

        assert response.status_code == HTTP_200_OK
        assert response.json() == {
            "status": "error",
            "error": "Failed to list files: Access Denied",
        }


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health(self, client: TestClient) -> None:
        """Test the health check reports the store status."""
        response = client.get("/health")

        assert response.status_code == HTTP_200_OK
        body = response.json()
        assert body["status"] == "healthy"
        assert body["storage_connected"] is True


class TestStreamRelay:
    """Tests for relaying object streams into responses."""

    @pytest.mark.asyncio
    async def test_close_before_first_chunk(self, blob_store: InMemoryBlobStore) -> None:
        """Test closing an unstarted relay still closes the backend read."""
        blob_store.add(StorageLocation.PRIVATE, "a.png", PNG_BYTES)
        relay = StreamRelay(await blob_store.get_stream(StorageLocation.PRIVATE, "a.png"))

        await relay.aclose()

        assert blob_store.closed_streams == 1
        with pytest.raises(StopAsyncIteration):
            await anext(relay)

    @pytest.mark.asyncio
    async def test_close_mid_stream(self, blob_store: InMemoryBlobStore) -> None:
        """Test closing after a partial read closes the backend read once."""
        blob_store.add(StorageLocation.PRIVATE, "a.png", PNG_BYTES)
        relay = StreamRelay(await blob_store.get_stream(StorageLocation.PRIVATE, "a.png"))

        assert await anext(relay) == PNG_BYTES[:4]
        await relay.aclose()
        await relay.aclose()

        assert blob_store.closed_streams == 1

    @pytest.mark.asyncio
    async def test_exhaustion_closes(self, blob_store: InMemoryBlobStore) -> None:
        """Test reading to the end closes the backend read."""
        blob_store.add(StorageLocation.PRIVATE, "a.png", PNG_BYTES)
        relay = StreamRelay(await blob_store.get_stream(StorageLocation.PRIVATE, "a.png"))

        data = b"".join([chunk async for chunk in relay])

        assert data == PNG_BYTES
        assert blob_store.closed_streams == 1
