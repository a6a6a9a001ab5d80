"""Health & Readiness Probes — process liveness and dispatch readiness.

Invariants:
    - GET /api/v1/health/ returns 200 whenever the process is serving
    - GET /api/v1/health/ready returns 503 until the lifespan has attached a
      database manager that answers SELECT 1
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "switchyard-api", "version": "1.0.0"}


@router.get("/ready")
async def readiness(request: Request):
    """Database reachable and router tree loaded."""
    db = getattr(request.app.state, "db", None)
    if db is None or not await db.health_check():
        logger.warning("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    procedures = len(request.app.state.dispatch.router.procedures())
    return {
        "status": "ready",
        "checks": {"database": "healthy", "procedures": procedures},
    }
