"""
Health check endpoints for the REST API.
Basic liveness plus a detailed check of the database and gateway breaker.
"""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tablebook_shared.config.logging import rest_api_logger as logger
from tablebook_shared.config.settings import settings
from tablebook_shared.infrastructure.db import get_db
from tablebook_api.services.payments import get_all_breaker_stats


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "tablebook-api",
        "environment": settings.environment,
    }


def _check_database(db: Session) -> dict:
    started = time.monotonic()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database health check failed", error=str(exc))
        return {"status": "unhealthy", "error": type(exc).__name__}
    return {"status": "healthy", "latency_ms": round((time.monotonic() - started) * 1000, 2)}


@router.get("/health/detailed")
def detailed_health_check(db: Session = Depends(get_db)):
    """
    Detailed health check.
    Returns 503 if the database is unreachable. An open gateway breaker
    marks the service degraded without failing the check.
    """
    database = _check_database(db)
    breakers = get_all_breaker_stats()

    status = "healthy"
    if database["status"] != "healthy":
        status = "unhealthy"
    elif any(stats["state"] != "closed" for stats in breakers.values()):
        status = "degraded"

    checks = {
        "service": "tablebook-api",
        "environment": settings.environment,
        "status": status,
        "dependencies": {"database": database},
        "circuit_breakers": breakers,
    }

    if status == "unhealthy":
        return JSONResponse(content=checks, status_code=503)
    return checks
