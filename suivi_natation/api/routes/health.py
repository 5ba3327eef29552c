"""
Health check endpoints.

- /health: liveness, is the process running?
- /health/ready: readiness, can we serve traffic?

Running on the local mirror is a normal state, so readiness only fails on
configuration errors, never because Snowflake is absent.
"""

import logging
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..dependencies import SettingsDep, TrainingApiDep

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
async def health_check(settings: SettingsDep, training_api: TrainingApiDep) -> HealthResponse:
    """
    Liveness check.

    Reports which storage answers right now without touching it.
    """
    capabilities = training_api.get_capabilities()
    return HealthResponse(
        status="ok",
        version=settings.api_version,
        details={
            "mode": capabilities.mode,
            "imports": capabilities.imports,
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the service can handle traffic.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(settings: SettingsDep, training_api: TrainingApiDep):
    """
    Readiness check.

    Configuration must be complete for whatever is partially configured.
    Storage is reported with its current mode; functions are optional.
    """
    checks: list[ReadinessCheck] = []
    all_ok = True

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        checks.append(ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}"
        ))
        all_ok = False
    else:
        checks.append(ReadinessCheck(name="configuration", status="ok"))

    mode = training_api.get_capabilities().mode
    checks.append(ReadinessCheck(
        name="storage",
        status="ok",
        error=None if mode == "remote" else "local mirror",
    ))

    checks.append(ReadinessCheck(
        name="functions",
        status="ok",
        error=None if settings.has_functions else "not configured",
    ))

    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=settings.api_version,
        checks=checks,
    )

    if not all_ok:
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response
