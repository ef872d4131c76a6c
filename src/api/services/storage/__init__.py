"""Storage service module.

Provides abstracted object store operations with an S3 implementation.
"""

from .base import BlobStore
from .exceptions import (
    StorageConnectionError,
    StorageDeleteError,
    StorageDownloadError,
    StorageError,
    StorageListError,
    StorageNotFoundError,
    StorageUploadError,
)
from .pagination import collect_keys, iter_keys
from .s3 import S3StorageService, S3StorageSettings
from .schemas import KeyPage, ObjectInfo, ObjectStream, PutResult

__all__ = [
    # Protocol
    "BlobStore",
    # Implementation
    "S3StorageService",
    "S3StorageSettings",
    # Pagination
    "collect_keys",
    "iter_keys",
    # Schemas
    "KeyPage",
    "ObjectInfo",
    "ObjectStream",
    "PutResult",
    # Exceptions
    "StorageConnectionError",
    "StorageDeleteError",
    "StorageDownloadError",
    "StorageError",
    "StorageListError",
    "StorageNotFoundError",
    "StorageUploadError",
]
