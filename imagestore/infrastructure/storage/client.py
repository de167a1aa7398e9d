"""
Object storage client provider.

Builds one boto3 S3 client per provider against an S3-compatible endpoint
(AWS S3, MinIO, R2), using either static keys or container IAM credentials:

- Both S3_ACCESS_KEY and S3_SECRET_KEY set: static credentials.
- Either missing: credentials come from the container metadata endpoint
  (ECS task role), adapted into botocore's credential chain.

The client is created lazily on first use and memoized. Concurrent first
callers share a single construction.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import boto3
import botocore.session
from botocore.client import BaseClient
from botocore.config import Config
from botocore.credentials import CredentialResolver
from botocore.exceptions import BotoCoreError, ClientError

from ...config.settings import Settings, get_settings
from .credentials import ContainerCredentialSource, CredentialSource, DelegatedCredentialProvider
from .errors import (
    BucketUnreachableError,
    CredentialResolutionError,
    StorageConfigError,
    StorageNotInitializedError,
)

logger = logging.getLogger(__name__)

_BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


@dataclass
class StorageConfig:
    """
    Connection configuration for S3-compatible storage.

    Built once at startup (see create_storage_config) and passed to the
    provider, so nothing below this point reads the environment.
    """
    host: str
    bucket_name: str
    public_url: str
    port: Optional[int] = None
    use_ssl: bool = True
    region: str = "us-east-1"
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    credentials_timeout: float = 5.0
    credentials_max_attempts: int = 3

    def __post_init__(self) -> None:
        if not self.host or "://" in self.host or "/" in self.host or any(c.isspace() for c in self.host):
            raise StorageConfigError(f"Invalid storage host {self.host!r}: expected a bare host name")
        if self.port is not None and not 1 <= self.port <= 65535:
            raise StorageConfigError(f"Invalid storage port {self.port}")
        if not _BUCKET_NAME_PATTERN.match(self.bucket_name) or ".." in self.bucket_name:
            raise StorageConfigError(f"Invalid bucket name {self.bucket_name!r}")
        if not self.public_url:
            raise StorageConfigError("Public URL base must not be empty")

        self.public_url = self.public_url.rstrip("/")

    @property
    def endpoint_url(self) -> str:
        scheme = "https" if self.use_ssl else "http"
        if self.port is None:
            return f"{scheme}://{self.host}"
        return f"{scheme}://{self.host}:{self.port}"

    @property
    def uses_static_credentials(self) -> bool:
        return bool(self.access_key) and bool(self.secret_key)


def create_storage_config(settings: Settings) -> StorageConfig:
    """
    Build StorageConfig from application settings.

    Raises StorageConfigError naming every missing variable, so a bad
    deployment reports all of them at once.
    """
    missing = settings.validate_required_fields()
    if missing:
        raise StorageConfigError(
            f"Missing required storage configuration: {', '.join(missing)}",
            missing_fields=missing,
        )

    return StorageConfig(
        host=settings.s3_host,
        port=settings.s3_port,
        use_ssl=settings.s3_use_ssl,
        region=settings.aws_region,
        bucket_name=settings.s3_bucket,
        public_url=settings.s3_public_url,
        access_key=settings.s3_access_key,
        secret_key=settings.s3_secret_key,
        credentials_timeout=settings.s3_credentials_timeout,
        credentials_max_attempts=settings.s3_credentials_max_attempts,
    )


class StorageProvider:
    """
    Owns the process's S3 client.

    Use get_client() to obtain it; the client property is for synchronous
    call sites that run after startup has initialized the client.
    """

    def __init__(
        self,
        config: StorageConfig,
        credential_source: Optional[CredentialSource] = None,
    ) -> None:
        self._config = config
        self._credential_source = credential_source or ContainerCredentialSource(
            timeout=config.credentials_timeout,
            max_attempts=config.credentials_max_attempts,
        )
        self._client: Optional[BaseClient] = None
        self._lock = asyncio.Lock()

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> BaseClient:
        """
        The initialized client.

        Raises StorageNotInitializedError if get_client() has not completed,
        instead of handing out a client that was never configured.
        """
        if self._client is None:
            raise StorageNotInitializedError(
                "Storage client not initialized. Await get_client() or verify_reachable() first."
            )
        return self._client

    async def get_client(self) -> BaseClient:
        """Return the S3 client, creating it on first call."""
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is None:
                self._client = await asyncio.to_thread(self._create_client)
        return self._client

    async def verify_reachable(self) -> None:
        """
        Confirm the configured bucket exists and is accessible.

        Raises BucketUnreachableError on a missing bucket, denied access,
        or a connection failure.
        """
        client = await self.get_client()
        bucket = self._config.bucket_name

        try:
            await asyncio.to_thread(client.head_bucket, Bucket=bucket)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                "Bucket not reachable",
                extra={"bucket": bucket, "code": code, "error": str(e)}
            )
            if code in ("404", "NoSuchBucket", "NotFound"):
                message = f"Bucket '{bucket}' does not exist"
            elif code in ("403", "AccessDenied", "Forbidden"):
                message = f"Access to bucket '{bucket}' denied"
            else:
                message = f"Bucket '{bucket}' not reachable: {e}"
            raise BucketUnreachableError(bucket, message, code=code) from e
        except BotoCoreError as e:
            logger.error(
                "Storage endpoint not reachable",
                extra={"bucket": bucket, "endpoint": self._config.endpoint_url, "error": str(e)}
            )
            raise BucketUnreachableError(bucket, f"Storage endpoint not reachable: {e}") from e

        logger.info("Bucket reachable", extra={"bucket": bucket})

    def public_url(self, path: str) -> str:
        """Public URL for a stored object. The path is used verbatim."""
        return f"{self._config.public_url}/{path}"

    def _create_client(self) -> BaseClient:
        config = self._config
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        )

        if config.uses_static_credentials:
            client = boto3.client(
                "s3",
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.secret_key,
                region_name=config.region,
                config=boto_config,
            )
            strategy = "static"
        else:
            session = self._create_iam_session()
            client = session.client(
                "s3",
                endpoint_url=config.endpoint_url,
                region_name=config.region,
                config=boto_config,
            )
            strategy = "iam"

        logger.info(
            "Initialized storage client",
            extra={
                "endpoint": config.endpoint_url,
                "bucket": config.bucket_name,
                "region": config.region,
                "credentials": strategy,
            }
        )
        return client

    def _create_iam_session(self) -> boto3.Session:
        """
        Session whose only credential provider is the delegated one.

        Credentials are loaded here, not on the first request, so resolution
        errors reach the caller of get_client().
        """
        botocore_session = botocore.session.get_session()
        botocore_session.register_component(
            "credential_provider",
            CredentialResolver(providers=[DelegatedCredentialProvider(self._credential_source)]),
        )
        session = boto3.Session(botocore_session=botocore_session, region_name=self._config.region)

        if session.get_credentials() is None:
            raise CredentialResolutionError("Credential provider returned no credentials")

        return session


@lru_cache()
def get_storage_provider() -> StorageProvider:
    """
    Process-wide provider built from the cached settings.

    Raises StorageConfigError when required variables are missing.
    For tests, call get_storage_provider.cache_clear() to reset.
    """
    return StorageProvider(create_storage_config(get_settings()))
