"""
Container/IAM credentials for the storage client.

When no static keys are configured, the storage client signs requests with
temporary credentials from the hosting environment (ECS task role, EKS pod
identity). Two pieces are involved:

- A credential source: any callable returning ResolvedCredentials. The
  default, ContainerCredentialSource, reads the container metadata endpoint
  through botocore's fetcher, which owns timeouts and retries.
- DelegatedCredentialProvider: a botocore credential provider that calls the
  source and adapts its output into botocore credentials, refreshing through
  the source when the credentials carry an expiration.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from botocore.credentials import CredentialProvider, Credentials, RefreshableCredentials
from botocore.exceptions import BotoCoreError, MetadataRetrievalError
from botocore.utils import ContainerMetadataFetcher, parse_timestamp

from .errors import CredentialResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedCredentials:
    """Temporary credentials as returned by a credential source."""
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None
    expiration: Optional[datetime] = None


CredentialSource = Callable[[], ResolvedCredentials]


class _BoundedMetadataFetcher(ContainerMetadataFetcher):
    """Container metadata fetcher with a configurable timeout and attempt count."""

    def __init__(self, timeout: float, max_attempts: int) -> None:
        self.TIMEOUT_SECONDS = timeout
        self.RETRY_ATTEMPTS = max_attempts
        super().__init__()


class ContainerCredentialSource:
    """
    Resolve credentials from the container metadata endpoint.

    The endpoint location comes from the standard AWS environment:
    AWS_CONTAINER_CREDENTIALS_RELATIVE_URI (ECS) or
    AWS_CONTAINER_CREDENTIALS_FULL_URI, optionally with an authorization
    token (AWS_CONTAINER_AUTHORIZATION_TOKEN or ..._TOKEN_FILE).
    """

    ENV_VAR = "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI"
    ENV_VAR_FULL = "AWS_CONTAINER_CREDENTIALS_FULL_URI"
    ENV_VAR_AUTH_TOKEN = "AWS_CONTAINER_AUTHORIZATION_TOKEN"
    ENV_VAR_AUTH_TOKEN_FILE = "AWS_CONTAINER_AUTHORIZATION_TOKEN_FILE"

    def __init__(
        self,
        timeout: float = 5.0,
        max_attempts: int = 3,
        environ: Optional[dict[str, str]] = None,
        fetcher: Optional[ContainerMetadataFetcher] = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._fetcher = fetcher or _BoundedMetadataFetcher(timeout, max_attempts)
        self.timeout = timeout
        self.max_attempts = max_attempts

    def __call__(self) -> ResolvedCredentials:
        try:
            response = self._fetch()
        except (MetadataRetrievalError, BotoCoreError, ValueError) as e:
            logger.error(
                "Container credential resolution failed",
                extra={"error": str(e), "max_attempts": self.max_attempts},
            )
            raise CredentialResolutionError(f"Container credentials unavailable: {e}") from e

        try:
            expiration = response.get("Expiration")
            return ResolvedCredentials(
                access_key_id=response["AccessKeyId"],
                secret_access_key=response["SecretAccessKey"],
                session_token=response.get("Token") or None,
                expiration=parse_timestamp(expiration) if expiration else None,
            )
        except KeyError as e:
            raise CredentialResolutionError(
                f"Container credentials response missing field: {e}"
            ) from e

    def _fetch(self) -> dict[str, Any]:
        if self.ENV_VAR in self._environ:
            return self._fetcher.retrieve_uri(self._environ[self.ENV_VAR])

        if self.ENV_VAR_FULL in self._environ:
            return self._fetcher.retrieve_full_uri(
                self._environ[self.ENV_VAR_FULL],
                headers=self._auth_headers(),
            )

        raise CredentialResolutionError(
            "No static S3 keys configured and no container credentials endpoint "
            f"({self.ENV_VAR} or {self.ENV_VAR_FULL}) is set"
        )

    def _auth_headers(self) -> Optional[dict[str, str]]:
        token_file = self._environ.get(self.ENV_VAR_AUTH_TOKEN_FILE)
        if token_file:
            try:
                with open(token_file, "r", encoding="utf-8") as f:
                    return {"Authorization": f.read().strip()}
            except OSError as e:
                raise CredentialResolutionError(
                    f"Cannot read container authorization token file {token_file}: {e}"
                ) from e

        token = self._environ.get(self.ENV_VAR_AUTH_TOKEN)
        if token:
            return {"Authorization": token}

        return None


class DelegatedCredentialProvider(CredentialProvider):
    """
    botocore credential provider backed by a CredentialSource.

    Credentials with an expiration are wrapped in RefreshableCredentials so
    botocore calls the source again before they expire. Credentials without
    one are used as-is.
    """

    METHOD = "container-role"
    CANONICAL_NAME = "ContainerRole"

    def __init__(self, source: CredentialSource) -> None:
        super().__init__()
        self._source = source

    def load(self) -> Credentials:
        resolved = self._source()

        logger.debug(
            "Resolved delegated credentials",
            extra={
                "has_session_token": resolved.session_token is not None,
                "expires": resolved.expiration.isoformat() if resolved.expiration else None,
            }
        )

        if resolved.expiration is None:
            return Credentials(
                access_key=resolved.access_key_id,
                secret_key=resolved.secret_access_key,
                token=resolved.session_token,
                method=self.METHOD,
            )

        return RefreshableCredentials.create_from_metadata(
            metadata=to_botocore_metadata(resolved),
            refresh_using=self._refresh,
            method=self.METHOD,
        )

    def _refresh(self) -> dict[str, Any]:
        resolved = self._source()
        if resolved.expiration is None:
            raise CredentialResolutionError(
                "Refreshed container credentials carry no expiration"
            )
        return to_botocore_metadata(resolved)


def to_botocore_metadata(resolved: ResolvedCredentials) -> dict[str, Any]:
    """Convert ResolvedCredentials to the metadata dict RefreshableCredentials expects."""
    return {
        "access_key": resolved.access_key_id,
        "secret_key": resolved.secret_access_key,
        "token": resolved.session_token,
        "expiry_time": resolved.expiration.isoformat() if resolved.expiration else None,
    }
