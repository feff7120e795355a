"""Health check endpoints.

- ``/health``: liveness, always 200
- ``/healthz``: DB and Redis connectivity with component status, 503 when degraded
"""

from typing import Any

import redis
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_async_engine
from backend.app.utils.logging import api_logger

router = APIRouter()


async def check_db(settings: Settings) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        async with get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return (True, "ok")
    except Exception as e:
        api_logger.warning("health.db_failed", {"error": type(e).__name__})
        return (False, f"error: {type(e).__name__}")


async def check_redis(settings: Settings) -> tuple[bool, str]:
    """Check Redis connectivity.

    Returns:
        (is_ok, status_message)
    """
    if not settings.redis_url:
        return (True, "not_configured")

    try:
        client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        client.ping()
        return (True, "ok")
    except redis.RedisError as e:
        api_logger.warning("health.redis_failed", {"error": type(e).__name__})
        return (False, f"error: {type(e).__name__}")


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe; 200 whenever the process is serving."""
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz() -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    Returns:
        200 with component status if DB and Redis are reachable,
        503 with the same body otherwise
    """
    settings = get_settings()

    db_ok, db_status = await check_db(settings)
    redis_ok, redis_status = await check_redis(settings)

    body = {
        "status": "ok" if db_ok and redis_ok else "degraded",
        "components": {"db": db_status, "redis": redis_status},
    }

    if not (db_ok and redis_ok):
        return JSONResponse(content=body, status_code=503)

    return body
