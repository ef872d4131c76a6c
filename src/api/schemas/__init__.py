"""API schemas module."""

from .health import HealthResponse

__all__ = ["HealthResponse"]
