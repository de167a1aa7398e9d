"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Storage variables keep the names the deployment already uses
(S3_HOST, S3_BUCKET, AWS_REGION, ...).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "imagestore API"
    api_version: str = "v1"

    # S3-compatible storage
    s3_host: str = Field(
        default="",
        description="Storage endpoint host, without scheme or path. Required."
    )
    s3_port: Optional[int] = Field(
        default=None,
        description="Storage endpoint port. Unset means the protocol default (443/80)."
    )
    s3_use_ssl: bool = Field(
        default=True,
        description="Connect to the storage endpoint over TLS."
    )
    s3_access_key: Optional[str] = Field(
        default=None,
        description="Static access key. Leave unset to use the container IAM role."
    )
    s3_secret_key: Optional[str] = Field(
        default=None,
        description="Static secret key. Leave unset to use the container IAM role."
    )
    aws_region: str = Field(
        default="us-east-1",
        description="Storage region used for request signing."
    )
    s3_bucket: str = Field(
        default="",
        description="Bucket holding stored images. Required."
    )
    s3_public_url: str = Field(
        default="",
        description="Base URL under which stored objects are publicly reachable. Required."
    )
    s3_credentials_timeout: float = Field(
        default=5.0,
        description="Timeout in seconds for each container metadata credential request."
    )
    s3_credentials_max_attempts: int = Field(
        default=3,
        description="Attempts made against the container metadata endpoint before giving up."
    )
    s3_verify_on_startup: bool = Field(
        default=True,
        description="Check that the bucket is reachable during startup and abort if not."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("s3_port", "s3_use_ssl", "aws_region", mode="before")
    @classmethod
    def _empty_means_unset(cls, value, info):
        """An empty variable (e.g. `S3_PORT=` in compose files) falls back to the default."""
        if isinstance(value, str) and not value.strip():
            return cls.model_fields[info.field_name].default
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def uses_static_credentials(self) -> bool:
        """Both static keys present; otherwise the IAM role is used."""
        return bool(self.s3_access_key) and bool(self.s3_secret_key)

    def validate_required_fields(self) -> list[str]:
        """
        Return the environment variable names of missing required fields.

        Credentials are never required: a missing key switches the
        client over to container IAM credentials.
        """
        missing = []

        if not self.s3_host:
            missing.append("S3_HOST")
        if not self.s3_bucket:
            missing.append("S3_BUCKET")
        if not self.s3_public_url:
            missing.append("S3_PUBLIC_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, call get_settings.cache_clear() to reset.

    Malformed variables raise StorageConfigError naming each of them,
    the same error missing storage configuration produces.
    """
    from ..infrastructure.storage.errors import StorageConfigError

    try:
        return Settings()
    except ValidationError as e:
        invalid = [str(error["loc"][0]).upper() for error in e.errors() if error["loc"]]
        raise StorageConfigError(
            f"Invalid configuration: {', '.join(invalid)}",
            invalid_fields=invalid,
        ) from e
