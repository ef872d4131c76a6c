"""Marker-based listing pagination.

The list API returns at most one page per call together with a truncation
flag. There is no continuation token: the last key of a truncated page is
passed back as the marker of the next call.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from .exceptions import StorageListError

if TYPE_CHECKING:
    from src.core.enums import StorageLocation

    from .base import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000


async def iter_keys(
    store: BlobStore,
    location: StorageLocation,
    *,
    prefix: str | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> AsyncIterator[str]:
    """Yield every key in a location, following truncated listings.

    Args:
        store: Blob store to list.
        location: Location to list.
        prefix: Optional key prefix filter.
        page_size: Keys requested per call.

    Yields:
        Keys in listing order.

    Raises:
        StorageListError: If a call fails or a truncated page is empty.
    """
    marker: str | None = None
    is_truncated = True
    pages = 0

    while is_truncated:
        page = await store.list_page(
            location,
            prefix=prefix,
            marker=marker,
            max_keys=page_size,
        )
        pages += 1

        for key in page.keys:
            yield key

        is_truncated = page.is_truncated
        if is_truncated:
            if not page.keys:
                raise StorageListError(
                    f"Listing of {location.value} reported truncation with an empty page"
                )
            marker = page.keys[-1]

    logger.debug(f"Listed {location.value} in {pages} page(s)")


async def collect_keys(
    store: BlobStore,
    location: StorageLocation,
    *,
    prefix: str | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[str]:
    """Collect every key in a location into a list."""
    return [
        key
        async for key in iter_keys(store, location, prefix=prefix, page_size=page_size)
    ]
