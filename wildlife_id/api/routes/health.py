"""
Health check and system status endpoints.

Provides endpoints for:
- Basic health check
- Liveness probe
- Readiness check with the configured classifier tiers
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional
import time

from wildlife_id.core.config import Settings, get_settings
from wildlife_id.ml.species_reference import get_species_reference
from wildlife_id.services.identification_service import (
    IdentificationService,
    get_identification_service,
)

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: float
    version: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check with component status."""
    status: str
    timestamp: float
    version: str
    components: dict[str, dict]
    uptime_seconds: Optional[float] = None


# Track startup time
_startup_time: Optional[float] = None


def set_startup_time() -> None:
    """Set the startup time (called on app startup)."""
    global _startup_time
    _startup_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Simple health status indicating the service is running.
    """
    return HealthResponse(
        status="healthy",
        timestamp=time.time(),
        version=settings.app_version
    )


@router.get("/ready", response_model=DetailedHealthResponse)
async def readiness_check(
    settings: Settings = Depends(get_settings),
    service: IdentificationService = Depends(get_identification_service),
) -> DetailedHealthResponse:
    """
    Detailed readiness check.

    Reports:
    - Classifier tiers in invocation order
    - Species reference table size

    Remote classifiers are not called; an unreachable model only means the
    chain falls through to a later tier.
    """
    components = {}

    try:
        components["identification_pipeline"] = {
            "status": "ready",
            **service.describe(),
        }
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Service not ready: {e}")

    components["species_reference"] = {
        "status": "ready",
        "entries": len(get_species_reference()),
    }

    uptime = None
    if _startup_time:
        uptime = time.time() - _startup_time

    return DetailedHealthResponse(
        status="ready",
        timestamp=time.time(),
        version=settings.app_version,
        components=components,
        uptime_seconds=uptime
    )


@router.get("/live")
async def liveness_check() -> dict:
    """
    Simple liveness probe for Kubernetes.

    Returns 200 if the process is running.
    """
    return {"status": "alive"}
