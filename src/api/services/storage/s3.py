"""S3-compatible blob store implementation."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING
from urllib.parse import quote

import aioboto3
import msgspec
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.core.enums import StorageLocation

from .exceptions import (
    StorageConnectionError,
    StorageDeleteError,
    StorageDownloadError,
    StorageListError,
    StorageNotFoundError,
    StorageUploadError,
)
from .schemas import DEFAULT_CONTENT_TYPE, KeyPage, ObjectInfo, ObjectStream, PutResult

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

logger = logging.getLogger(__name__)

# Constants
NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
STREAM_CHUNK_SIZE = 64 * 1024


class S3StorageSettings(msgspec.Struct, kw_only=True, frozen=True):
    """S3 connection and bucket configuration."""

    access_key_id: str
    secret_access_key: str
    region: str
    buckets: dict[StorageLocation, str]
    endpoint_url: str | None = None
    public_url_base: str | None = None

    def bucket_for(self, location: StorageLocation) -> str:
        """Bucket bound to a location."""
        return self.buckets[location]


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _error_message(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Message", error))


class S3StorageService:
    """Blob store backed by the S3 API.

    Works against AWS S3 and S3-compatible services. A client is opened
    per operation; streamed reads keep theirs open until the stream is
    closed.
    """

    def __init__(self, settings: S3StorageSettings) -> None:
        """Initialize S3 storage service.

        Args:
            settings: S3 configuration settings.
        """
        self._settings = settings
        self._session = aioboto3.Session()
        self._client_config = Config(
            signature_version="s3v4",
            retries={"total_max_attempts": 1, "mode": "standard"},
            connect_timeout=10,
            read_timeout=30,
        )

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[S3Client]:
        """Get S3 client with context management.

        Yields:
            Configured S3 client.
        """
        async with self._session.client(  # type: ignore[reportGeneralTypeIssues]
            "s3",
            region_name=self._settings.region,
            endpoint_url=self._settings.endpoint_url,
            aws_access_key_id=self._settings.access_key_id,
            aws_secret_access_key=self._settings.secret_access_key,
            config=self._client_config,
        ) as client:
            yield client

    def public_url(self, location: StorageLocation, key: str) -> str:
        """Build the direct URL of an object.

        Uses the configured public URL base when set, the custom endpoint in
        path style otherwise, and the regional AWS virtual-host URL as the
        last resort.
        """
        bucket = self._settings.bucket_for(location)
        quoted_key = quote(key)
        if self._settings.public_url_base:
            return f"{self._settings.public_url_base.rstrip('/')}/{quoted_key}"
        if self._settings.endpoint_url:
            return f"{self._settings.endpoint_url.rstrip('/')}/{bucket}/{quoted_key}"
        return f"https://{bucket}.s3.{self._settings.region}.amazonaws.com/{quoted_key}"

    async def put(
        self,
        location: StorageLocation,
        key: str,
        data: bytes,
        *,
        content_type: str,
        acl: str | None = None,
    ) -> PutResult:
        """Upload an object to its location's bucket."""
        bucket = self._settings.bucket_for(location)
        params = {
            "Bucket": bucket,
            "Key": key,
            "Body": data,
            "ContentLength": len(data),
            "ContentType": content_type,
        }
        if acl:
            params["ACL"] = acl

        try:
            async with self._get_client() as client:
                response = await client.put_object(**params)

            logger.info(f"Uploaded {key} to {bucket} ({len(data)} bytes)")

            return PutResult(
                key=key,
                etag=response.get("ETag", ""),
                location_url=self.public_url(location, key),
            )

        except ClientError as e:
            logger.error(f"S3 upload failed for {bucket}/{key}: {e}")
            raise StorageUploadError(
                f"Failed to upload file: {_error_message(e)}",
                cause=e,
            ) from e
        except BotoCoreError as e:
            logger.error(f"Unexpected error uploading to S3: {e}")
            raise StorageUploadError(f"Upload failed: {e}", cause=e) from e

    async def head(self, location: StorageLocation, key: str) -> ObjectInfo:
        """Fetch object metadata."""
        bucket = self._settings.bucket_for(location)
        try:
            async with self._get_client() as client:
                response = await client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise StorageNotFoundError(f"File not found: {key}", cause=e) from e
            logger.error(f"S3 head failed for {bucket}/{key}: {e}")
            raise StorageConnectionError(
                f"Failed to check file existence: {_error_message(e)}",
                cause=e,
            ) from e
        except BotoCoreError as e:
            logger.error(f"S3 head failed for {bucket}/{key}: {e}")
            raise StorageConnectionError(f"Failed to check file existence: {e}", cause=e) from e

        return ObjectInfo(
            key=key,
            content_type=response.get("ContentType", DEFAULT_CONTENT_TYPE),
            size_bytes=response.get("ContentLength"),
            etag=response.get("ETag"),
        )

    async def exists(self, location: StorageLocation, key: str) -> bool:
        """Check if an object exists."""
        try:
            await self.head(location, key)
            return True
        except StorageNotFoundError:
            return False

    async def get_stream(self, location: StorageLocation, key: str) -> ObjectStream:
        """Open a chunked stream over an object's bytes.

        The client stays open until the stream is exhausted or closed, so a
        client disconnect that closes the stream aborts the backend read.
        """
        bucket = self._settings.bucket_for(location)
        stack = AsyncExitStack()
        try:
            client = await stack.enter_async_context(self._get_client())
            response = await client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            await stack.aclose()
            if _error_code(e) in NOT_FOUND_CODES:
                raise StorageNotFoundError(f"File not found: {key}", cause=e) from e
            logger.error(f"S3 download failed for {bucket}/{key}: {e}")
            raise StorageDownloadError(
                f"Failed to download file: {_error_message(e)}",
                cause=e,
            ) from e
        except BotoCoreError as e:
            await stack.aclose()
            logger.error(f"S3 download failed for {bucket}/{key}: {e}")
            raise StorageDownloadError(f"Download failed: {e}", cause=e) from e

        body = response["Body"]
        stack.callback(body.close)

        async def chunks() -> AsyncIterator[bytes]:
            try:
                async for chunk in body.iter_chunks(STREAM_CHUNK_SIZE):
                    yield chunk
            finally:
                await stack.aclose()

        return ObjectStream(
            key=key,
            chunks=chunks(),
            content_type=response.get("ContentType", DEFAULT_CONTENT_TYPE),
            size_bytes=response.get("ContentLength"),
            on_close=stack.aclose,
        )

    async def delete(self, location: StorageLocation, key: str) -> None:
        """Delete an object from its location's bucket."""
        bucket = self._settings.bucket_for(location)
        try:
            async with self._get_client() as client:
                await client.delete_object(Bucket=bucket, Key=key)
            logger.info(f"Deleted {key} from {bucket}")

        except ClientError as e:
            logger.error(f"S3 delete failed for {bucket}/{key}: {e}")
            raise StorageDeleteError(
                f"Failed to delete file: {_error_message(e)}",
                cause=e,
            ) from e
        except BotoCoreError as e:
            logger.error(f"S3 delete failed for {bucket}/{key}: {e}")
            raise StorageDeleteError(f"Delete failed: {e}", cause=e) from e

    async def list_page(
        self,
        location: StorageLocation,
        *,
        prefix: str | None = None,
        marker: str | None = None,
        max_keys: int = 1000,
    ) -> KeyPage:
        """List one page of keys with the marker-based list API."""
        bucket = self._settings.bucket_for(location)
        params: dict[str, object] = {"Bucket": bucket, "MaxKeys": max_keys}
        if prefix:
            params["Prefix"] = prefix
        if marker:
            params["Marker"] = marker

        try:
            async with self._get_client() as client:
                response = await client.list_objects(**params)
        except ClientError as e:
            logger.error(f"S3 list failed for {bucket}: {e}")
            raise StorageListError(
                f"Failed to list files: {_error_message(e)}",
                cause=e,
            ) from e
        except BotoCoreError as e:
            logger.error(f"S3 list failed for {bucket}: {e}")
            raise StorageListError(f"List failed: {e}", cause=e) from e

        return KeyPage(
            keys=[obj["Key"] for obj in response.get("Contents", [])],
            is_truncated=bool(response.get("IsTruncated", False)),
        )

    async def health_check(self) -> bool:
        """Check if every configured bucket is accessible."""
        try:
            async with self._get_client() as client:
                for bucket in set(self._settings.buckets.values()):
                    await client.head_bucket(Bucket=bucket)
                return True
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"S3 health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close any open connections.

        Note: aioboto3 manages connections per-context, so this is a no-op.
        Kept for protocol compliance.
        """
        pass
