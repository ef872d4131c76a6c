"""Content type resolution for uploaded files."""

from __future__ import annotations

import logging
import re

import filetype
import msgspec

from src.api.services.storage.schemas import DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)

FILENAME_PATTERN = re.compile(r"(?P<stem>.+)\.(?P<ext>\w+)", re.DOTALL)


class InvalidFilenameError(ValueError):
    """Raised when a filename has no ``name.ext`` form."""


class ResolvedContentType(msgspec.Struct, kw_only=True, frozen=True):
    """Outcome of resolving an upload's type."""

    extension: str
    mime: str
    original_filename: str  # Client filename without its last extension
    sniffed: bool  # False when the filename fallback was used


def split_filename(filename: str) -> tuple[str, str]:
    """Split a filename into stem and last extension.

    Args:
        filename: Client-supplied filename.

    Returns:
        ``(stem, extension)``, e.g. ``("my.trip.photo", "png")``.

    Raises:
        InvalidFilenameError: If the filename has no ``name.ext`` form.
    """
    match = FILENAME_PATTERN.fullmatch(filename)
    if match is None:
        raise InvalidFilenameError(f"Invalid filename: {filename!r}")
    return match.group("stem"), match.group("ext")


def resolve_content_type(data: bytes, filename: str) -> ResolvedContentType:
    """Determine extension and MIME type of an upload.

    Binary signature sniffing wins whenever it recognizes the bytes. Formats
    without a signature (legacy office documents and the like) fall back to
    the filename's extension with a generic binary MIME type.

    Args:
        data: Raw file bytes.
        filename: Client-supplied filename.

    Returns:
        Resolved extension, MIME type and original filename.

    Raises:
        InvalidFilenameError: If the filename has no ``name.ext`` form.
    """
    stem, name_ext = split_filename(filename)

    kind = filetype.guess(data) if data else None
    if kind is not None:
        return ResolvedContentType(
            extension=kind.extension,
            mime=kind.mime,
            original_filename=stem,
            sniffed=True,
        )

    logger.debug(f"No signature match for {filename!r}, using its extension")
    return ResolvedContentType(
        extension=name_ext,
        mime=DEFAULT_CONTENT_TYPE,
        original_filename=stem,
        sniffed=False,
    )
