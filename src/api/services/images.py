"""Image service - orchestrates uploads, retrieval, deletion and listing.

This is the main service layer behind the image endpoints. It composes
storage keys, resolves which location holds a key, and relays the blob
store's results. It keeps no state of its own between requests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import msgspec

from src.api.services.content_type import resolve_content_type
from src.api.services.identifiers import generate_public_id
from src.api.services.storage import (
    StorageError,
    StorageNotFoundError,
    collect_keys,
)
from src.api.services.storage.pagination import DEFAULT_PAGE_SIZE
from src.core.enums import LOCATION_PROBE_ORDER, StorageLocation

if TYPE_CHECKING:
    from collections.abc import Mapping

    from src.api.services.storage import BlobStore, ObjectStream

logger = logging.getLogger(__name__)


class UploadedImage(msgspec.Struct, kw_only=True):
    """Result of storing an upload."""

    public_id: str
    key: str
    filename: str  # "{public_id}.{extension}"
    location: StorageLocation
    url: str
    etag: str
    size_bytes: int
    extension: str
    mime: str
    original_filename: str


class ImageListing(msgspec.Struct, kw_only=True):
    """Every key per location."""

    public_keys: list[str]
    private_keys: list[str]


class ImageService:
    """Service for storing and serving images by generated identifier.

    Public objects are addressed by their direct store URL. Private objects
    are addressed by a service-relative path and read through
    :meth:`open_private`.
    """

    def __init__(
        self,
        store: BlobStore,
        *,
        api_prefix: str = "api",
        key_prefixes: Mapping[StorageLocation, str] | None = None,
        object_acl: str | None = "public-read",
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize image service.

        Args:
            store: Blob store holding both locations.
            api_prefix: Path prefix used in private object URLs.
            key_prefixes: Key prefix per location.
            object_acl: Canned ACL applied to every put.
            page_size: Keys requested per listing call.
        """
        self._store = store
        self._api_prefix = api_prefix.strip("/")
        self._key_prefixes = dict(key_prefixes or {})
        self._object_acl = object_acl or None
        self._page_size = page_size

    def build_key(self, location: StorageLocation, filename: str) -> str:
        """Build the storage key of a filename within a location."""
        return f"{self._key_prefixes.get(location, '')}{filename}"

    def private_url(self, filename: str) -> str:
        """Service-relative URL of a private object."""
        if self._api_prefix:
            return f"/{self._api_prefix}/image/{filename}"
        return f"/image/{filename}"

    # -------------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------------

    async def upload(
        self,
        *,
        data: bytes,
        filename: str,
        location: StorageLocation,
    ) -> UploadedImage:
        """Store an upload under a freshly generated identifier.

        Args:
            data: Raw file bytes.
            filename: Client-supplied filename.
            location: Target storage location.

        Returns:
            UploadedImage describing the stored object.

        Raises:
            InvalidFilenameError: If the filename has no ``name.ext`` form.
            StorageUploadError: If the store rejects the upload.
        """
        resolved = resolve_content_type(data, filename)
        public_id = generate_public_id()
        new_filename = f"{public_id}.{resolved.extension}"
        key = self.build_key(location, new_filename)

        # The ACL is the same for both locations; "private" only changes routing.
        result = await self._store.put(
            location,
            key,
            data,
            content_type=resolved.mime,
            acl=self._object_acl,
        )

        if location == StorageLocation.PRIVATE:
            url = self.private_url(new_filename)
        else:
            url = result.location_url

        logger.info(
            f"Stored {filename!r} as {key} in {location.value} "
            f"({len(data)} bytes, {resolved.mime}, "
            f"{'sniffed' if resolved.sniffed else 'from extension'})"
        )

        return UploadedImage(
            public_id=public_id,
            key=key,
            filename=new_filename,
            location=location,
            url=url,
            etag=result.etag,
            size_bytes=len(data),
            extension=resolved.extension,
            mime=resolved.mime,
            original_filename=resolved.original_filename,
        )

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    async def _probe(self, location: StorageLocation, key: str) -> bool:
        """Check whether a location holds a key.

        Any failure of the probe counts as absence.
        """
        try:
            return await self._store.exists(location, key)
        except StorageError as e:
            logger.warning(f"Existence probe of {key} in {location.value} failed: {e}")
            return False

    async def locate(self, filename: str) -> StorageLocation | None:
        """Find the first location holding a filename.

        Locations are checked in ``LOCATION_PROBE_ORDER``.

        Returns:
            The holding location, or None if no location has it.
        """
        for location in LOCATION_PROBE_ORDER:
            if await self._probe(location, self.build_key(location, filename)):
                logger.debug(f"Found {filename} in {location.value}")
                return location
        return None

    async def open_private(self, filename: str) -> ObjectStream | None:
        """Open a private object for streaming.

        Only the private location is consulted.

        Returns:
            Stream over the object's bytes, or None if it doesn't exist.

        Raises:
            StorageDownloadError: If the read fails.
        """
        key = self.build_key(StorageLocation.PRIVATE, filename)
        if not await self._probe(StorageLocation.PRIVATE, key):
            return None
        try:
            return await self._store.get_stream(StorageLocation.PRIVATE, key)
        except StorageNotFoundError:
            # Deleted between the probe and the read
            return None

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    async def delete(self, filename: str) -> StorageLocation | None:
        """Delete a filename from whichever location holds it.

        Returns:
            The location it was deleted from, or None if no location had it.

        Raises:
            StorageDeleteError: If the store reports a failure.
        """
        location = await self.locate(filename)
        if location is None:
            logger.info(f"Delete of {filename}: not found in any location")
            return None

        await self._store.delete(location, self.build_key(location, filename))
        return location

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    async def list_keys(self, location: StorageLocation) -> list[str]:
        """List every key of a location.

        Raises:
            StorageListError: If a listing call fails.
        """
        return await collect_keys(
            self._store,
            location,
            prefix=self._key_prefixes.get(location) or None,
            page_size=self._page_size,
        )

    async def list_all(self) -> ImageListing:
        """List every key of both locations.

        Raises:
            StorageListError: If a listing call fails.
        """
        public_keys = await self.list_keys(StorageLocation.PUBLIC)
        private_keys = await self.list_keys(StorageLocation.PRIVATE)

        logger.info(
            f"Listed {len(public_keys)} public and {len(private_keys)} private objects"
        )

        return ImageListing(public_keys=public_keys, private_keys=private_keys)
