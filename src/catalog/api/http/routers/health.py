"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.core.storage.session_storage import RedisSessionStorage

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe; does not check dependencies."""
    return {"status": "healthy", "service": "catalog"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    Returns 503 when the database is unreachable. Session storage problems
    only degrade the report since sessions fall back to process memory.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = app_deps.config

    checks: dict[str, dict[str, Any]] = {}
    db_healthy = app_deps.database_service.health_check()
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "type": "sqlite" if config.database.is_sqlite else "server",
    }

    storage = app_deps.session_storage
    if isinstance(storage, RedisSessionStorage):
        redis_ok = await storage.ping()
        checks["sessions"] = {
            "status": "healthy" if redis_ok else "degraded",
            "type": "redis",
        }
    else:
        checks["sessions"] = {"status": "healthy", "type": "in-memory"}

    covers_dir = app_deps.cover_storage.directory
    checks["covers"] = {
        "status": "healthy" if covers_dir.is_dir() else "degraded",
        "path": str(covers_dir),
    }

    body = {
        "status": "ready" if db_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }
    if not db_healthy:
        return JSONResponse(status_code=503, content=body)
    return body
