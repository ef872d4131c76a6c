"""Storage service DTOs using msgspec."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

import msgspec

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class PutResult(msgspec.Struct, kw_only=True):
    """Result of a successful put."""

    key: str
    etag: str
    location_url: str  # Direct store URL of the object


class ObjectInfo(msgspec.Struct, kw_only=True):
    """Metadata returned by a head request."""

    key: str
    content_type: str = DEFAULT_CONTENT_TYPE
    size_bytes: int | None = None
    etag: str | None = None


class KeyPage(msgspec.Struct, kw_only=True):
    """One page of a key listing."""

    keys: list[str]
    is_truncated: bool


class ObjectStream(msgspec.Struct, kw_only=True):
    """Readable stream of an object's bytes.

    ``chunks`` must be consumed or closed with :meth:`aclose`; closing it
    releases the backend connection.
    """

    key: str
    chunks: AsyncIterator[bytes]
    content_type: str = DEFAULT_CONTENT_TYPE
    size_bytes: int | None = None
    on_close: Callable[[], Awaitable[None]] | None = None

    async def aclose(self) -> None:
        """Abort the read and release the backend connection."""
        aclose = getattr(self.chunks, "aclose", None)
        if aclose is not None:
            await aclose()
        if self.on_close is not None:
            await self.on_close()
