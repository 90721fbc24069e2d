"""
Recipedium Health Check Endpoints
Liveness and readiness probes
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
import asyncio

from core.config import settings
from core.database import Database, get_database
from utils.date_utils import utcnow

router = APIRouter()


@router.get("")
async def health_check():
    """Basic health check endpoint; does not touch the database"""
    return {
        "success": True,
        "message": "API is running",
        "timestamp": utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "version": settings.VERSION,
    }


@router.get("/ready")
async def readiness_check(database: Database = Depends(get_database)):
    """
    Readiness probe endpoint
    Connects lazily and pings the database
    """
    try:
        db_healthy = await asyncio.wait_for(database.ping(), timeout=5.0)
    except asyncio.TimeoutError:
        db_healthy = False

    body = {
        "success": db_healthy,
        "database": "connected" if db_healthy else "disconnected",
        "timestamp": utcnow().isoformat(),
    }
    if not db_healthy:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
