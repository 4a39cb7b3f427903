"""Health check endpoints for load balancers and monitoring."""

from datetime import datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from workhub.auth.revocation import get_redis
from workhub.config import settings
from workhub.database import engine

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Liveness probe; touches no dependency."""
    return {
        "status": "ok",
        "service": "WorkHub",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness probe: 200 only when the database and Redis both answer."""
    checks = {
        "database": "unknown",
        "redis": "unknown",
    }
    healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {str(e)[:100]}"
        healthy = False

    try:
        redis_client = await get_redis()
        await redis_client.ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"error: {str(e)[:100]}"
        healthy = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "WorkHub",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
