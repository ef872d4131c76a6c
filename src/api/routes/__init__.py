"""API routes module."""

from .health import HealthController
from .images import ImageController

__all__ = [
    "HealthController",
    "ImageController",
]
