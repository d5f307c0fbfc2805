"""
LiveCall Demo - Health Check Endpoint

Liveness endpoint for load balancers and uptime monitors.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from .schemas import HealthResponse

router = APIRouter(tags=["system"])


def utc_timestamp() -> str:
    """Current UTC time, millisecond precision, Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Overall liveness check.

    Returns:
        - ok: always true while the process serves requests
        - ts: current server time
    """
    return HealthResponse(ok=True, ts=utc_timestamp())
