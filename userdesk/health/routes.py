"""
Health Check Endpoints

Basic health and status endpoints for monitoring and load balancer checks.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
import time
from datetime import datetime, timezone

from config import Settings
from dependencies import get_config
from userdesk.database.engine import health_check as db_health_check

router = APIRouter()

_START_TIME = time.time()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str
    environment: str
    uptime_seconds: float


class DetailedHealthResponse(HealthResponse):
    """Detailed health check with database status."""
    database_status: str


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_config)):
    """
    Basic health check endpoint.
    Returns simple status information for load balancers.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        environment=settings.environment,
        uptime_seconds=time.time() - _START_TIME,
    )


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(settings: Settings = Depends(get_config)):
    """
    Detailed health check endpoint.
    Includes database connectivity.
    """
    try:
        database_status = "healthy" if await db_health_check() else "unhealthy"
    except Exception:
        database_status = "error"

    return DetailedHealthResponse(
        status="healthy" if database_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        environment=settings.environment,
        uptime_seconds=time.time() - _START_TIME,
        database_status=database_status,
    )
