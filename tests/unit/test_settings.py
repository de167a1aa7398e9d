"""
Unit tests for configuration loading and storage config validation.

No network access: these only read the (monkeypatched) environment.
"""

import pytest

from imagestore.config.settings import Settings, get_settings
from imagestore.infrastructure.storage.client import StorageConfig, create_storage_config, get_storage_provider
from imagestore.infrastructure.storage.errors import StorageConfigError


def load_settings() -> Settings:
    return Settings(_env_file=None)


# ---------------------------------------------------------------------------
# Settings Tests
# ---------------------------------------------------------------------------

class TestSettings:
    """Tests for environment-sourced settings."""

    def test_defaults_when_optional_values_unset(self, storage_env):
        """Port unset, TLS on, region us-east-1."""
        settings = load_settings()

        assert settings.s3_port is None
        assert settings.s3_use_ssl is True
        assert settings.aws_region == "us-east-1"
        assert settings.s3_credentials_timeout == 5.0
        assert settings.s3_credentials_max_attempts == 3

    def test_reads_storage_variables(self, storage_env, monkeypatch):
        """S3_* and AWS_REGION map onto settings fields."""
        monkeypatch.setenv("S3_PORT", "9000")
        monkeypatch.setenv("S3_USE_SSL", "false")
        monkeypatch.setenv("AWS_REGION", "eu-west-1")

        settings = load_settings()

        assert settings.s3_host == "s3.amazonaws.com"
        assert settings.s3_port == 9000
        assert settings.s3_use_ssl is False
        assert settings.aws_region == "eu-west-1"
        assert settings.s3_bucket == "images"

    def test_validate_required_fields_lists_all_missing(self):
        """Every missing required variable is reported, credentials are not."""
        settings = load_settings()

        assert settings.validate_required_fields() == ["S3_HOST", "S3_BUCKET", "S3_PUBLIC_URL"]

    def test_validate_required_fields_empty_when_complete(self, storage_env):
        assert load_settings().validate_required_fields() == []

    @pytest.mark.parametrize(
        "access_key, secret_key, expected",
        [
            ("key", "secret", True),
            ("key", None, False),
            (None, "secret", False),
            (None, None, False),
        ],
    )
    def test_uses_static_credentials_requires_both_keys(
        self, storage_env, monkeypatch, access_key, secret_key, expected
    ):
        """A single missing key switches to the IAM strategy."""
        monkeypatch.delenv("S3_ACCESS_KEY")
        monkeypatch.delenv("S3_SECRET_KEY")
        if access_key:
            monkeypatch.setenv("S3_ACCESS_KEY", access_key)
        if secret_key:
            monkeypatch.setenv("S3_SECRET_KEY", secret_key)

        assert load_settings().uses_static_credentials is expected

    @pytest.mark.parametrize(
        "variable, field, expected",
        [
            ("S3_PORT", "s3_port", None),
            ("S3_USE_SSL", "s3_use_ssl", True),
            ("AWS_REGION", "aws_region", "us-east-1"),
        ],
    )
    def test_empty_variable_falls_back_to_default(self, storage_env, monkeypatch, variable, field, expected):
        """`S3_PORT=` in a compose file means unset, not an invalid value."""
        monkeypatch.setenv(variable, "")

        settings = load_settings()

        assert getattr(settings, field) == expected

    def test_empty_port_builds_config_with_protocol_default(self, storage_env, monkeypatch):
        monkeypatch.setenv("S3_PORT", "")
        monkeypatch.setenv("S3_USE_SSL", "")
        monkeypatch.setenv("AWS_REGION", "")

        config = create_storage_config(load_settings())

        assert config.endpoint_url == "https://s3.amazonaws.com"
        assert config.region == "us-east-1"


class TestGetSettings:
    """Tests for the cached settings accessor."""

    def test_malformed_port_raises_config_error(self, storage_env, monkeypatch):
        monkeypatch.setenv("S3_PORT", "abc")

        with pytest.raises(StorageConfigError) as exc_info:
            get_settings()

        assert exc_info.value.invalid_fields == ["S3_PORT"]
        assert "S3_PORT" in str(exc_info.value)

    def test_malformed_flag_raises_config_error(self, storage_env, monkeypatch):
        monkeypatch.setenv("S3_USE_SSL", "sometimes")

        with pytest.raises(StorageConfigError, match="S3_USE_SSL"):
            get_settings()

    def test_provider_factory_reports_malformed_port(self, storage_env, monkeypatch):
        monkeypatch.setenv("S3_PORT", "abc")

        with pytest.raises(StorageConfigError):
            get_storage_provider()


# ---------------------------------------------------------------------------
# StorageConfig Tests
# ---------------------------------------------------------------------------

class TestCreateStorageConfig:
    """Tests for building StorageConfig from settings."""

    def test_builds_config_from_settings(self, storage_env, monkeypatch):
        monkeypatch.setenv("S3_PORT", "9000")
        monkeypatch.setenv("S3_USE_SSL", "false")

        config = create_storage_config(load_settings())

        assert config.host == "s3.amazonaws.com"
        assert config.endpoint_url == "http://s3.amazonaws.com:9000"
        assert config.bucket_name == "images"
        assert config.uses_static_credentials

    def test_missing_required_values_raise_config_error(self, monkeypatch):
        """Missing host and bucket are reported together."""
        monkeypatch.setenv("S3_PUBLIC_URL", "https://cdn.example.com")

        with pytest.raises(StorageConfigError) as exc_info:
            create_storage_config(load_settings())

        assert exc_info.value.missing_fields == ["S3_HOST", "S3_BUCKET"]
        assert "S3_HOST" in str(exc_info.value)


class TestStorageConfig:
    """Tests for StorageConfig validation and derived values."""

    def test_endpoint_url_uses_protocol_default_port(self):
        config = StorageConfig(host="minio.local", bucket_name="images", public_url="https://cdn")

        assert config.endpoint_url == "https://minio.local"

    def test_public_url_trailing_slash_is_stripped(self):
        config = StorageConfig(host="minio.local", bucket_name="images", public_url="https://cdn.example.com/")

        assert config.public_url == "https://cdn.example.com"

    @pytest.mark.parametrize("host", ["", "https://minio.local", "minio.local/path", "minio local"])
    def test_rejects_malformed_host(self, host):
        with pytest.raises(StorageConfigError, match="host"):
            StorageConfig(host=host, bucket_name="images", public_url="https://cdn")

    @pytest.mark.parametrize("bucket", ["", "ab", "My_Bucket", "-images", "images-", "a..b", "x" * 64])
    def test_rejects_malformed_bucket(self, bucket):
        with pytest.raises(StorageConfigError, match="bucket"):
            StorageConfig(host="minio.local", bucket_name=bucket, public_url="https://cdn")

    @pytest.mark.parametrize("port", [0, 65536])
    def test_rejects_out_of_range_port(self, port):
        with pytest.raises(StorageConfigError, match="port"):
            StorageConfig(host="minio.local", port=port, bucket_name="images", public_url="https://cdn")

    def test_config_error_is_a_value_error(self):
        """Callers catching ValueError for bad config keep working."""
        with pytest.raises(ValueError):
            StorageConfig(host="minio.local", bucket_name="images", public_url="")
