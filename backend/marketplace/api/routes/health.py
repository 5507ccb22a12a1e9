"""Health Routes — liveness and readiness checks for the container platform.

Invariants:
    - GET /health/ answers 200 while the process is up, without touching the database
    - GET /health/ready answers 503 until the database responds
    - Readiness reports which payment provider is wired (fake must never reach production)
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from marketplace.config import get_settings
from marketplace.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

SERVICE_NAME = "card-marketplace-api"


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness(request: Request):
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": request.app.version,
    }


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        logger.warning("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "payments": get_settings().payment_provider,
        },
    }
