"""API services module."""

from .content_type import InvalidFilenameError, ResolvedContentType, resolve_content_type
from .identifiers import generate_public_id
from .images import ImageListing, ImageService, UploadedImage

__all__ = [
    "ImageListing",
    "ImageService",
    "InvalidFilenameError",
    "ResolvedContentType",
    "UploadedImage",
    "generate_public_id",
    "resolve_content_type",
]
