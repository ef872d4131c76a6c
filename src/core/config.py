"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Self

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.enums import StorageLocation

SHARED_BUCKET_PREFIXES = {
    StorageLocation.PUBLIC: "public/",
    StorageLocation.PRIVATE: "private/",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Server settings
    port: int = Field(..., description="API server port (required)")
    host: str = Field(default="0.0.0.0", description="API server host")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Object store credentials
    aws_access_key: str = Field(default="", description="Object store access key ID")
    aws_secret_access_key: str = Field(default="", description="Object store secret access key")
    buckets_region: str = Field(default="us-east-1", description="Region of the buckets")
    s3_endpoint_url: str | None = Field(
        default=None,
        description="Custom S3-compatible endpoint (R2, MinIO, ...)",
    )

    # Buckets
    bucket_name: str = Field(
        default="",
        description="Bucket used for both locations unless overridden",
    )
    public_bucket_name: str | None = Field(default=None, description="Bucket for public objects")
    private_bucket_name: str | None = Field(default=None, description="Bucket for private objects")
    public_key_prefix: str | None = Field(
        default=None,
        description="Key prefix for public objects (defaults to public/ on a shared bucket)",
    )
    private_key_prefix: str | None = Field(
        default=None,
        description="Key prefix for private objects (defaults to private/ on a shared bucket)",
    )

    # Object settings
    public_url_base: str | None = Field(
        default=None,
        description="Public URL base for public objects (if using a custom domain)",
    )
    object_acl: str = Field(
        default="public-read",
        description="Canned ACL applied to every put (empty to omit)",
    )
    list_page_size: int = Field(
        default=1000,
        ge=1,
        le=1000,
        description="Maximum keys requested per listing call",
    )

    # Routing settings
    api_prefix: str = Field(
        default="api",
        description="Path prefix the service is mounted under, used in private object URLs",
    )
    allowed_hosts: str = Field(
        default="",
        description="Comma separated hosts reserved for CORS restriction",
    )

    @computed_field
    @property
    def public_bucket(self) -> str:
        """Resolved bucket for the public location."""
        return self.public_bucket_name or self.bucket_name

    @computed_field
    @property
    def private_bucket(self) -> str:
        """Resolved bucket for the private location."""
        return self.private_bucket_name or self.bucket_name

    @property
    def buckets(self) -> dict[StorageLocation, str]:
        """Bucket name per storage location."""
        return {
            StorageLocation.PUBLIC: self.public_bucket,
            StorageLocation.PRIVATE: self.private_bucket,
        }

    @property
    def key_prefixes(self) -> dict[StorageLocation, str]:
        """Key prefix per storage location.

        Unset prefixes default to ``public/`` and ``private/`` when both
        locations share a bucket, and to no prefix otherwise.
        """
        shared = self.public_bucket == self.private_bucket
        configured = {
            StorageLocation.PUBLIC: self.public_key_prefix,
            StorageLocation.PRIVATE: self.private_key_prefix,
        }
        return {
            location: (
                prefix
                if prefix is not None
                else (SHARED_BUCKET_PREFIXES[location] if shared else "")
            )
            for location, prefix in configured.items()
        }

    @model_validator(mode="after")
    def check_locations_distinct(self) -> Self:
        """Refuse a configuration where both locations address the same keys."""
        public = self.key_prefixes[StorageLocation.PUBLIC]
        private = self.key_prefixes[StorageLocation.PRIVATE]
        # A key may only ever fall under one location
        if self.public_bucket == self.private_bucket and (
            public.startswith(private) or private.startswith(public)
        ):
            raise ValueError(
                f"Public and private locations share bucket {self.public_bucket!r} "
                f"with overlapping key prefixes {public!r} and {private!r}; "
                "set distinct prefixes"
            )
        return self

    @property
    def allowed_hosts_list(self) -> list[str]:
        """Parsed ALLOWED_HOSTS value."""
        return [host.strip() for host in self.allowed_hosts.split(",") if host.strip()]

    @property
    def storage_configured(self) -> bool:
        """Check if the object store is properly configured."""
        return bool(
            self.aws_access_key
            and self.aws_secret_access_key
            and self.public_bucket
            and self.private_bucket
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    get_settings.cache_clear()
