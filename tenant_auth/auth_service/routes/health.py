"""
Health check endpoints for the auth service
"""
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from typing import Dict, Any

from ..errors import TenantResolutionError

router = APIRouter(tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        dict: Health status and timestamp
    """
    return {
        "status": "healthy",
        "timestamp": _now()
    }


@router.get("/{tenant}/health", status_code=status.HTTP_200_OK)
async def tenant_health_check(tenant: str) -> Dict[str, Any]:
    """Per-tenant liveness; does not touch the tenant store."""
    return {
        "status": "healthy",
        "tenant": tenant,
        "timestamp": _now()
    }


@router.get("/{tenant}/ready", status_code=status.HTTP_200_OK)
async def tenant_readiness_check(tenant: str, request: Request):
    """
    Readiness check that opens (or reuses) the tenant store and pings it.

    Returns:
        dict: Readiness status with store connectivity, or a 503 response
        when the store cannot be reached
    """
    registry = request.app.state.tenants
    try:
        connected = await registry.ping(tenant)
    except TenantResolutionError as e:
        # A bad tenant id is the caller's error; a store that cannot be opened is not ready.
        if e.status_code < 500:
            raise
        connected = False

    response = {
        "status": "ready" if connected else "not_ready",
        "tenant": tenant,
        "database": "connected" if connected else "disconnected",
        "timestamp": _now()
    }
    if not connected:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response)
    return response
