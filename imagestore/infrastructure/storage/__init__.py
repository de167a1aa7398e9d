"""
Object storage integration for stored images.

Provides the S3-compatible client provider (static keys or container IAM
credentials), the startup reachability check, and public URL construction.
"""

from .client import StorageConfig, StorageProvider, create_storage_config, get_storage_provider
from .credentials import (
    ContainerCredentialSource,
    CredentialSource,
    DelegatedCredentialProvider,
    ResolvedCredentials,
)
from .errors import (
    BucketUnreachableError,
    CredentialResolutionError,
    StorageConfigError,
    StorageError,
    StorageNotInitializedError,
)

__all__ = [
    "StorageConfig",
    "StorageProvider",
    "create_storage_config",
    "get_storage_provider",
    "ContainerCredentialSource",
    "CredentialSource",
    "DelegatedCredentialProvider",
    "ResolvedCredentials",
    "BucketUnreachableError",
    "CredentialResolutionError",
    "StorageConfigError",
    "StorageError",
    "StorageNotInitializedError",
]
