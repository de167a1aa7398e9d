"""
Shared test fixtures.

- AWS S3 mocking (moto)
- Storage configurations for both credential strategies
- Settings/provider cache resets
"""

import boto3
import pytest
from moto import mock_aws

from imagestore.config.settings import get_settings
from imagestore.infrastructure.storage.client import StorageConfig, get_storage_provider

CONTAINER_ENV_VARS = (
    "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI",
    "AWS_CONTAINER_CREDENTIALS_FULL_URI",
    "AWS_CONTAINER_AUTHORIZATION_TOKEN",
    "AWS_CONTAINER_AUTHORIZATION_TOKEN_FILE",
)

STORAGE_ENV_VARS = (
    "S3_HOST",
    "S3_PORT",
    "S3_USE_SSL",
    "S3_ACCESS_KEY",
    "S3_SECRET_KEY",
    "S3_BUCKET",
    "S3_PUBLIC_URL",
    "AWS_REGION",
    "S3_VERIFY_ON_STARTUP",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test from a clean environment and empty caches."""
    for var in CONTAINER_ENV_VARS + STORAGE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    get_settings.cache_clear()
    get_storage_provider.cache_clear()
    yield
    get_settings.cache_clear()
    get_storage_provider.cache_clear()


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mock_s3(aws_credentials):
    """Mocked S3 using moto, with an 'images' bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket="images")
        yield client


@pytest.fixture
def mock_s3_empty(aws_credentials):
    """Mocked S3 using moto, with no buckets."""
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def static_config() -> StorageConfig:
    """Storage config with static keys, pointed at the moto-handled endpoint."""
    return StorageConfig(
        host="s3.amazonaws.com",
        bucket_name="images",
        public_url="https://cdn.example.com",
        access_key="testing",
        secret_key="testing",
    )


@pytest.fixture
def iam_config() -> StorageConfig:
    """Storage config without static keys, so the IAM strategy applies."""
    return StorageConfig(
        host="s3.amazonaws.com",
        bucket_name="images",
        public_url="https://cdn.example.com",
    )


@pytest.fixture
def storage_env(monkeypatch):
    """Complete storage environment with static keys."""
    monkeypatch.setenv("S3_HOST", "s3.amazonaws.com")
    monkeypatch.setenv("S3_BUCKET", "images")
    monkeypatch.setenv("S3_PUBLIC_URL", "https://cdn.example.com")
    monkeypatch.setenv("S3_ACCESS_KEY", "testing")
    monkeypatch.setenv("S3_SECRET_KEY", "testing")
