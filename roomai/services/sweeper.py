"""Reconciliation sweep for designs stuck in PENDING or PROCESSING.

A design can stay non-terminal forever when the process dies mid-generation
or when both the provider call and the failure-recording write fail. The
sweep forces such rows to FAILED once their last write is older than
STALE_DESIGN_MINUTES. It runs once at startup and then every
SWEEP_INTERVAL_SECONDS.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomai.config import settings
from roomai.errors import InvalidTransitionError, NotFoundError
from roomai.models.db import utcnow
from roomai.repositories.designs import DesignRepository

logger = structlog.get_logger()


def stale_error_message(minutes: int) -> str:
    return f"Design generation did not finish within {minutes} minutes"


async def sweep_stale_designs(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    stale_minutes: int | None = None,
    now: datetime | None = None,
) -> int:
    """Mark stale non-terminal designs FAILED. Returns how many rows changed."""
    minutes = settings.stale_design_minutes if stale_minutes is None else stale_minutes
    cutoff = (now or utcnow()) - timedelta(minutes=minutes)
    message = stale_error_message(minutes)

    swept = 0
    async with session_factory() as session:
        repo = DesignRepository(session)
        for design_id in await repo.find_stale_ids(cutoff):
            try:
                await repo.mark_failed(design_id, error=message)
            except (InvalidTransitionError, NotFoundError):
                # finished or deleted since the query ran
                continue
            swept += 1
        await session.commit()

    if swept:
        logger.warning("stale_designs_swept", count=swept, stale_minutes=minutes)
    return swept


async def run_periodic_sweep(
    session_factory: async_sessionmaker[AsyncSession],
    interval_seconds: float,
) -> None:
    """Sweep forever; a failed pass is logged and retried next interval."""
    while True:
        try:
            await sweep_stale_designs(session_factory)
        except Exception:
            logger.exception("stale_design_sweep_failed")
        await asyncio.sleep(interval_seconds)
