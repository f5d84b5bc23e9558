"""Health check endpoint."""

import logging

from fastapi import APIRouter, Depends

from portal.core.dependencies import get_backend, get_guard
from portal.services.backend_client import BackendClient
from portal.services.inflight import InFlightGuard, RedisInFlightGuard

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(
    backend: BackendClient = Depends(get_backend),
    guard: InFlightGuard = Depends(get_guard),
):
    """Check backend reachability and, when configured, Redis."""
    backend_status = "ok" if await backend.ping() else "error"

    redis_status = "disabled"
    if isinstance(guard, RedisInFlightGuard):
        try:
            redis_status = "ok" if await guard.ping() else "error"
        except Exception as exc:
            logger.warning("Redis ping failed: %r", exc)
            redis_status = "error"

    healthy = backend_status == "ok" and redis_status != "error"
    return {
        "status": "ok" if healthy else "degraded",
        "backend": backend_status,
        "redis": redis_status,
        "version": "0.1.0",
    }
