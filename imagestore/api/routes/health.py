"""
Health check endpoints.

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (is the bucket reachable?)

The distinction matters in orchestration systems like Kubernetes
where liveness and readiness have different behaviors.
"""

import logging
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ...infrastructure.storage.errors import StorageError
from ..dependencies import SettingsDep, StorageProviderDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(provider: StorageProviderDep) -> HealthResponse:
    """
    Liveness check - is the process alive?

    Must stay fast: no calls to the storage endpoint.
    """
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "storage": {
                "bucket": provider.bucket_name,
                "initialized": provider.is_initialized,
            }
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the service can handle traffic. Checks the storage bucket.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(
    settings: SettingsDep,
    provider: StorageProviderDep,
    response: Response,
) -> ReadinessResponse:
    """
    Readiness check - can we serve traffic?

    Checks configuration and that the bucket answers a HEAD request.
    Returns 503 if any check fails, which tells load balancers not
    to route traffic here.
    """
    checks: list[ReadinessCheck] = []

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        checks.append(ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}"
        ))
    else:
        checks.append(ReadinessCheck(name="configuration", status="ok"))

    try:
        await provider.verify_reachable()
        checks.append(ReadinessCheck(name="storage", status="ok"))
    except StorageError as e:
        checks.append(ReadinessCheck(name="storage", status="error", error=str(e)))

    all_ok = all(c.status == "ok" for c in checks)
    if not all_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )

    return ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=__version__,
        checks=checks,
    )
