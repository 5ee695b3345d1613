from __future__ import annotations

from datetime import UTC, datetime

import redis.asyncio as aioredis
import structlog
from backoffice.core.config import get_settings
from backoffice.infrastructure.db.session import get_session_factory
from fastapi import APIRouter
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter(tags=["Observability"])
logger = structlog.get_logger()


async def check_database() -> dict:
    """Check the SQL database connection."""
    try:
        session_factory = get_session_factory()
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
            return {"status": "ok"}
    except (SQLAlchemyError, OSError) as e:
        return {"status": "error", "message": str(e)[:100]}


async def check_redis() -> dict:
    """Check Redis; only reported when it backs the rate limiter."""
    settings = get_settings()
    if settings.rate_limit_backend != "redis":
        return {"status": "skipped"}

    try:
        client = aioredis.from_url(settings.redis_url)
        await client.ping()
        await client.aclose()
        return {"status": "ok"}
    except (RedisError, OSError) as e:
        return {"status": "error", "message": str(e)[:100]}


@router.get("/health", summary="Service health probe")
async def health_check() -> dict:
    """Return basic service and datastore status information."""
    settings = get_settings()

    database_status = await check_database()
    redis_status = await check_redis()

    overall_status = "ok"
    if database_status.get("status") != "ok" or redis_status.get("status") == "error":
        overall_status = "degraded"

    payload = {
        "service": settings.app_name,
        "version": settings.version,
        "status": overall_status,
        "timestamp": datetime.now(UTC).isoformat(),
        "datastores": {
            "database": database_status,
            "redis": redis_status,
        },
    }
    logger.info("health_probe", **payload)
    return payload
