"""Liveness endpoint reporting the database and cache."""
import logging
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_redis_client
from core.redis import RedisClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Overall status plus one entry per backing service."""

    status: Literal["healthy", "degraded"]
    database: Literal["healthy", "unhealthy"]
    cache: Literal["healthy", "unavailable"]


async def _check_database(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        logger.exception("Database health check failed")
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
    redis_client: RedisClient = Depends(get_redis_client),
) -> HealthResponse:
    """
    Report service health.

    Reads fall back to the database without Redis, so only a database
    failure marks the service degraded.
    """
    database_ok = await _check_database(db)
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        database="healthy" if database_ok else "unhealthy",
        cache="healthy" if await redis_client.ping() else "unavailable",
    )
