"""Banner, liveness and readiness endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/", summary="Service banner")
async def root() -> dict[str, str]:
    return {"message": "PIXSHOP API Server is running!"}


@router.get("/health/live", summary="Liveness check")
async def live() -> dict[str, str]:
    """Indicates API process is running."""
    return {"status": "ok", "service": "pixshop-api"}


@router.get("/health/ready", summary="Readiness check")
async def ready(request: Request) -> dict[str, Any]:
    """Check the database and, when configured, the Redis used for SKU locks."""
    checks: dict[str, Any] = {
        "status": "ok",
        "service": "pixshop-api",
        "checks": {},
    }
    all_healthy = True

    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        checks["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful",
        }
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        checks["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}",
        }
        all_healthy = False

    redis_client = request.app.state.sku_lock.client
    if redis_client is None:
        checks["checks"]["redis"] = {
            "status": "skipped",
            "message": "REDIS_URL not configured, SKU locks disabled",
        }
    else:
        try:
            redis_client.ping()
            checks["checks"]["redis"] = {
                "status": "healthy",
                "message": "Redis connection successful",
            }
        except RedisError as e:
            # SKU locks degrade to SQL-only protection, so this is not fatal
            logger.warning(f"Redis health check failed: {e}")
            checks["checks"]["redis"] = {
                "status": "unhealthy",
                "message": f"Redis connection failed: {str(e)}",
            }

    if not all_healthy:
        checks["status"] = "unhealthy"
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=checks,
        )

    return checks
