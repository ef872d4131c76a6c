"""Blob store protocol definition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.core.enums import StorageLocation

    from .schemas import KeyPage, ObjectInfo, ObjectStream, PutResult


@runtime_checkable
class BlobStore(Protocol):
    """Protocol for object store backends.

    Every operation is addressed by a storage location and a flat string
    key, and performs exactly one remote call without retrying.
    """

    async def put(
        self,
        location: StorageLocation,
        key: str,
        data: bytes,
        *,
        content_type: str,
        acl: str | None = None,
    ) -> PutResult:
        """Store an object.

        Args:
            location: Target storage location.
            key: Object key.
            data: Raw object bytes.
            content_type: MIME type stored with the object.
            acl: Canned ACL to apply, if any.

        Returns:
            Put result with the object's ETag and direct URL.

        Raises:
            StorageUploadError: If the backend rejects the upload.
        """
        ...

    async def head(
        self,
        location: StorageLocation,
        key: str,
    ) -> ObjectInfo:
        """Fetch object metadata.

        Raises:
            StorageNotFoundError: If the object doesn't exist.
            StorageConnectionError: If the backend can't be reached.
        """
        ...

    async def exists(
        self,
        location: StorageLocation,
        key: str,
    ) -> bool:
        """Check if an object exists.

        Raises:
            StorageConnectionError: If the backend can't be reached.
        """
        ...

    async def get_stream(
        self,
        location: StorageLocation,
        key: str,
    ) -> ObjectStream:
        """Open a stream over an object's bytes.

        Raises:
            StorageNotFoundError: If the object doesn't exist.
            StorageDownloadError: If the read fails.
        """
        ...

    async def delete(
        self,
        location: StorageLocation,
        key: str,
    ) -> None:
        """Delete an object.

        Raises:
            StorageDeleteError: If the backend reports a failure.
        """
        ...

    async def list_page(
        self,
        location: StorageLocation,
        *,
        prefix: str | None = None,
        marker: str | None = None,
        max_keys: int = 1000,
    ) -> KeyPage:
        """List one page of keys.

        Args:
            location: Location to list.
            prefix: Only return keys starting with this prefix.
            marker: Return keys listed after this key.
            max_keys: Page size upper bound.

        Returns:
            The page's keys and whether more keys follow.

        Raises:
            StorageListError: If the listing fails.
        """
        ...

    def public_url(self, location: StorageLocation, key: str) -> str:
        """Build the direct URL of an object."""
        ...

    async def health_check(self) -> bool:
        """Check if every configured bucket is reachable."""
        ...

    async def close(self) -> None:
        """Close any open connections.

        Called during application shutdown.
        """
        ...
