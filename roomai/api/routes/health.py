"""Health check endpoint with real service connectivity probes.

Each service check has a short timeout to avoid blocking the response.
A service reporting "disconnected" does not affect the overall status ("ok");
the endpoint always returns 200 so load balancers keep routing.
"""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text

from roomai.config import settings
from roomai.database import get_engine

logger = structlog.get_logger()

router = APIRouter(tags=["health"])

_CHECK_TIMEOUT = 3.0  # seconds per service check


async def _check_database() -> str:
    """Run SELECT 1 through the application's engine."""

    async def _ping() -> None:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))

    try:
        await asyncio.wait_for(_ping(), timeout=_CHECK_TIMEOUT)
        return "connected"
    except Exception as exc:
        logger.debug("health_database_failed", error=str(exc))
        return "disconnected"


async def _check_r2() -> str:
    """Check R2 bucket accessibility via head_bucket."""
    from roomai.utils.r2 import get_client, r2_configured

    if not r2_configured():
        return "not_configured"

    def _head_bucket() -> None:
        get_client().head_bucket(Bucket=settings.r2_bucket_name)

    try:
        await asyncio.wait_for(asyncio.to_thread(_head_bucket), timeout=_CHECK_TIMEOUT)
        return "connected"
    except Exception as exc:
        logger.debug("health_r2_failed", error=str(exc))
        return "disconnected"


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Confirms the API process is alive; probes the database and R2 in parallel."""
    database, r2 = await asyncio.gather(_check_database(), _check_r2())

    job = getattr(request.app.state, "generation_job", None)
    return {
        "status": "ok",
        "version": request.app.version,
        "environment": settings.environment,
        "database": database,
        "r2": r2,
        "mock_providers": settings.use_mock_providers,
        "active_generations": job.pending_tasks if job is not None else 0,
    }
