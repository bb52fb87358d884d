"""Service banner, health, readiness, and version endpoints."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.config import get_settings
from dare2earn.database import get_engine, get_session
from dare2earn.redis_client import get_redis, redis_enabled

logger = structlog.get_logger()

router = APIRouter()


@router.get("/")
async def root() -> dict[str, object]:
    """Service banner with the top-level route groups."""
    return {
        "message": "Dare2Earn API Server",
        "status": "running",
        "endpoints": {"health": "/health", "auth": "/auth/*", "api": "/api/*"},
    }


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe. Returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe. Checks DB connectivity and pool usage, and Redis when configured."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except Exception as exc:  # noqa: BLE001
        logger.warning("readiness_check_failed", check="database", error=str(exc))
        checks["database"] = "error"

    if redis_enabled():
        try:
            await get_redis().ping()
            checks["redis"] = "ok"
        except Exception as exc:  # noqa: BLE001
            logger.warning("readiness_check_failed", check="redis", error=str(exc))
            checks["redis"] = "error"
    else:
        checks["redis"] = "disabled"

    all_ok = all(v in ("ok", "disabled") for v in checks.values())
    return {
        "status": "ready" if all_ok else "degraded",
        "checks": checks,
        "pool": get_engine().pool.status(),
    }


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
