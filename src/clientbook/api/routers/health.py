"""Liveness and database probes, served outside the versioned API."""

import time
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clientbook.api.schemas.health import (
    ComponentHealth,
    HealthDetailResponse,
    HealthResponse,
    HealthStatus,
)
from clientbook.db.config import get_db

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get("/health/db", response_model=HealthDetailResponse, summary="Database probe")
async def health_db(db: Annotated[AsyncSession, Depends(get_db)]) -> HealthDetailResponse:
    """Run ``SELECT 1`` and report whether it succeeded and how long it took.

    Always answers 200; a failing database shows up in the body.
    """
    return HealthDetailResponse.from_database(await probe_database(db))


async def probe_database(db: AsyncSession) -> ComponentHealth:
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        status, message = HealthStatus.UNHEALTHY, f"Database connection failed: {str(exc)[:100]}"
    else:
        status, message = HealthStatus.HEALTHY, "Database connection successful"

    return ComponentHealth(
        status=status,
        message=message,
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
    )
