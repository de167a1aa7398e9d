"""Storage error hierarchy."""

from typing import Optional


class StorageError(Exception):
    """Base class for object storage failures."""
    pass


class StorageConfigError(StorageError, ValueError):
    """Required storage configuration is missing or malformed."""

    def __init__(
        self,
        message: str,
        missing_fields: Optional[list[str]] = None,
        invalid_fields: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or []


class CredentialResolutionError(StorageError):
    """Container/IAM credentials could not be resolved."""
    pass


class BucketUnreachableError(StorageError):
    """The configured bucket is missing or not accessible."""

    def __init__(self, bucket_name: str, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.bucket_name = bucket_name
        self.code = code


class StorageNotInitializedError(StorageError):
    """The storage client was used before it was initialized."""
    pass
