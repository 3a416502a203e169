"""Health check endpoint, also advertising the edit lock timing clients should use."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_settings
from core.config import Settings


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    lock_duration_seconds: int
    lock_refresh_interval_seconds: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """
    Check application and database health.

    No authentication. Editing clients read the lease and refresh cadence
    from here instead of hard-coding them.
    """
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
        lock_duration_seconds=settings.lock_duration_seconds,
        lock_refresh_interval_seconds=settings.lock_refresh_interval_seconds,
    )
