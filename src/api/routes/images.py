"""Image API routes.

Provides endpoints for uploading files, streaming private objects back,
deleting objects and listing both storage locations.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Annotated, Any

import msgspec
from litestar import Controller, Request, Response, delete, get, post
from litestar.background_tasks import BackgroundTask
from litestar.datastructures import UploadFile
from litestar.exceptions import ClientException
from litestar.params import Parameter
from litestar.response import Stream
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from src.api.services.content_type import InvalidFilenameError
from src.api.services.images import ImageService
from src.api.services.storage import (
    ObjectStream,
    StorageDeleteError,
    StorageDownloadError,
    StorageListError,
    StorageUploadError,
)
from src.core.enums import ResponseStatus, StorageLocation

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Response schemas
# -----------------------------------------------------------------------------


class UploadResponse(msgspec.Struct, kw_only=True):
    """Response for a successful upload."""

    status: ResponseStatus = ResponseStatus.SUCCESS
    message: str
    url: str
    etag: str
    size_bytes: int = msgspec.field(name="bytes")
    format: str
    mime: str
    original_filename: str
    public_id: str
    original_extension: str


class StatusResponse(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Bare status response."""

    status: ResponseStatus
    message: str | None = None


class ListingResponse(msgspec.Struct, kw_only=True, rename="camel"):
    """Every key per location."""

    public_keys: list[str]
    private_keys: list[str]


class ListingErrorResponse(msgspec.Struct, kw_only=True):
    """Listing failure."""

    status: ResponseStatus = ResponseStatus.ERROR
    error: str


# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

FILE_FIELD = "file"
NO_FILE_MESSAGE = "No file uploaded"
NOT_FOUND_MESSAGE = "File not found"


def _not_found() -> Response[StatusResponse]:
    return Response(
        content=StatusResponse(status=ResponseStatus.ERROR, message=NOT_FOUND_MESSAGE),
        status_code=HTTP_404_NOT_FOUND,
    )


async def _first_file(request: Request[Any, Any, Any]) -> UploadFile | None:
    """Return the first upload in the ``file`` form field, if any."""
    try:
        form = await request.form()
    except ClientException as e:
        logger.warning(f"Unreadable upload body: {e.detail}")
        return None
    for value in form.getall(FILE_FIELD, []):
        if isinstance(value, UploadFile):
            return value
    return None


class StreamRelay:
    """Async iterator relaying an object stream into a response.

    Closing the relay closes the backend read, whether or not iteration
    ever started. Closing is idempotent.
    """

    def __init__(self, stream: ObjectStream) -> None:
        self._stream = stream
        self._closed = False

    def __aiter__(self) -> StreamRelay:
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await anext(self._stream.chunks)
        except BaseException:
            # Exhaustion, backend failure or cancellation on disconnect
            await self.aclose()
            raise

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._stream.aclose()


# -----------------------------------------------------------------------------
# Controller
# -----------------------------------------------------------------------------


class ImageController(Controller):
    """Image storage endpoints.

    Public objects are served by the object store directly. Private objects
    are only reachable through ``GET /image/{name}``.
    """

    path = "/"
    tags: Sequence[str] | None = ["Images"]

    @post("/upload-image", status_code=HTTP_200_OK)
    async def upload_image(
        self,
        request: Request[Any, Any, Any],
        image_service: ImageService,
        upload_type: Annotated[
            str | None,
            Parameter(
                query="type",
                description="'private' to store behind the service, anything else is public",
            ),
        ] = None,
    ) -> Response[UploadResponse | StatusResponse]:
        """Upload a file from the multipart field ``file``.

        Public uploads return the object store URL. Private uploads return a
        service-relative URL that must be fetched through this API. Bodies
        without a usable ``file`` part, including non-multipart bodies, are
        answered with an error payload.
        """
        file = await _first_file(request)
        if file is None:
            return Response(
                content=StatusResponse(status=ResponseStatus.ERROR, message=NO_FILE_MESSAGE),
                status_code=HTTP_200_OK,
            )

        location = (
            StorageLocation.PRIVATE
            if upload_type == StorageLocation.PRIVATE.value
            else StorageLocation.PUBLIC
        )
        content = await file.read()

        try:
            result = await image_service.upload(
                data=content,
                filename=file.filename or "",
                location=location,
            )
        except InvalidFilenameError as e:
            logger.error(f"Upload rejected: {e}")
            return Response(
                content=StatusResponse(status=ResponseStatus.ERROR, message=str(e)),
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except StorageUploadError as e:
            logger.error(f"Upload failed: {e}")
            return Response(
                content=StatusResponse(status=ResponseStatus.ERROR, message=str(e)),
                status_code=HTTP_200_OK,
            )

        return Response(
            content=UploadResponse(
                message="File is uploaded",
                url=result.url,
                etag=result.etag,
                size_bytes=result.size_bytes,
                format=result.extension,
                mime=result.mime,
                original_filename=result.original_filename,
                public_id=result.public_id,
                original_extension=result.extension,
            ),
            status_code=HTTP_200_OK,
        )

    @get("/image/{name:str}")
    async def get_image(
        self,
        image_service: ImageService,
        name: str,
    ) -> Response:
        """Stream a private object.

        Returns the raw bytes with the stored content type. Only the private
        location is consulted.
        """
        try:
            stream = await image_service.open_private(name)
        except StorageDownloadError as e:
            logger.error(f"Read of {name} failed: {e}")
            return Response(
                content=StatusResponse(status=ResponseStatus.ERROR, message=str(e)),
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if stream is None:
            return _not_found()

        headers = {}
        if stream.size_bytes is not None:
            headers["Content-Length"] = str(stream.size_bytes)

        relay = StreamRelay(stream)
        return Stream(
            content=relay,
            media_type=stream.content_type,
            headers=headers,
            status_code=HTTP_200_OK,
            # Runs when the response ends before iteration started
            background=BackgroundTask(relay.aclose),
        )

    @delete("/image/{name:str}", status_code=HTTP_200_OK)
    async def delete_image(
        self,
        image_service: ImageService,
        name: str,
    ) -> Response[StatusResponse]:
        """Delete an object from whichever location holds it.

        The private location is checked before the public one.
        """
        try:
            location = await image_service.delete(name)
        except StorageDeleteError as e:
            logger.error(f"Delete of {name} failed: {e}")
            return Response(
                content=StatusResponse(status=ResponseStatus.ERROR, message=str(e)),
                status_code=HTTP_200_OK,
            )

        if location is None:
            return _not_found()

        return Response(
            content=StatusResponse(
                status=ResponseStatus.SUCCESS,
                message=f"File deleted from {location.value} storage",
            ),
            status_code=HTTP_200_OK,
        )

    @get("/objects/list")
    async def list_objects(
        self,
        image_service: ImageService,
    ) -> Response[ListingResponse | ListingErrorResponse]:
        """List every key in both storage locations.

        Each location is paged through completely; nothing is cached.
        """
        try:
            listing = await image_service.list_all()
        except StorageListError as e:
            logger.error(f"Listing failed: {e}")
            return Response(
                content=ListingErrorResponse(error=str(e)),
                status_code=HTTP_200_OK,
            )

        return Response(
            content=ListingResponse(
                public_keys=listing.public_keys,
                private_keys=listing.private_keys,
            ),
            status_code=HTTP_200_OK,
        )
