"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the KV store is unreachable (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from commonroom.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "commonroom-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe — includes KV store connectivity."""
    manager = database.db_manager
    store_ok = await manager.health_check() if manager else False
    if not store_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "store_unavailable",
            },
        )
    return {"status": "ready", "checks": {"store": "healthy"}}
