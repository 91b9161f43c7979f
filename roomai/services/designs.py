"""Design service: the job-facing API surface.

Everything here runs in the request's session and raises typed AppErrors.
Generation itself is handed to ``DesignGenerationJob`` after the PENDING row
is committed.
"""

from __future__ import annotations

import math
import uuid
from collections import Counter

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from roomai.config import settings
from roomai.models.contracts import (
    DesignFilters,
    DesignListResponse,
    DesignResponse,
    DesignStats,
    DesignStatus,
    Pagination,
    RecentDesign,
    RegenerateDesignRequest,
    RoomSnapshot,
)
from roomai.models.db import Design, Room
from roomai.repositories.designs import DesignRepository
from roomai.services.authorization import (
    ensure_design_owner,
    ensure_project_owner,
    ensure_room_owner,
)
from roomai.services.generation_job import DesignGenerationJob

logger = structlog.get_logger()

RECENT_DESIGNS_LIMIT = 10


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def snapshot_room(room: Room) -> RoomSnapshot:
    """Copy the generation inputs out of a room loaded with its project."""
    return RoomSnapshot(
        room_id=room.id,
        room_type=room.type,
        style=room.project.style,
        length=room.length,
        width=room.width,
        height=room.height,
        materials=tuple(room.materials or ()),
        ambient_color=room.ambient_color,
        original_image_url=room.original_image_url,
    )


class DesignService:
    def __init__(self, session: AsyncSession, job: DesignGenerationJob) -> None:
        self.session = session
        self.job = job
        self.designs = DesignRepository(session)

    async def initiate_generation(
        self,
        user_id: str,
        room_id: uuid.UUID,
        *,
        custom_prompt: str | None = None,
        ai_provider: str | None = None,
        prompt_override: str | None = None,
    ) -> Design:
        """Create a PENDING design and start generation without waiting for it.

        ``prompt_override`` is a complete prompt sent to the provider as is.
        """
        room = await ensure_room_owner(self.session, room_id, user_id)
        provider = ai_provider or settings.default_ai_provider
        snapshot = snapshot_room(room)

        design = await self.designs.create_pending(
            room_id=room.id,
            ai_provider=provider,
            prompt=custom_prompt or prompt_override or "",
        )
        # The job reads and writes through its own sessions
        await self.session.commit()

        await self.job.spawn(
            design.id, snapshot, custom_prompt, provider, prompt_override=prompt_override
        )
        logger.info(
            "design_generation_initiated",
            design_id=str(design.id),
            room_id=str(room.id),
            user_id=user_id,
            ai_provider=provider,
        )
        return design

    async def regenerate_design(
        self,
        design_id: uuid.UUID,
        user_id: str,
        overrides: RegenerateDesignRequest | None = None,
    ) -> Design:
        """Start a new generation for the same room; the original row is not touched.

        Without a prompt override the original prompt is reused. A COMPLETED
        row holds the full provider prompt, which is sent unchanged; any other
        row still holds the caller's custom prompt.
        """
        original = await ensure_design_owner(self.session, design_id, user_id)
        overrides = overrides or RegenerateDesignRequest()
        custom_prompt = overrides.custom_prompt
        prompt_override = None
        if not custom_prompt:
            if original.status == DesignStatus.COMPLETED:
                prompt_override = original.prompt or None
            else:
                custom_prompt = original.prompt or None
        new_design = await self.initiate_generation(
            user_id,
            original.room_id,
            custom_prompt=custom_prompt,
            ai_provider=overrides.ai_provider or original.ai_provider,
            prompt_override=prompt_override,
        )
        logger.info(
            "design_regenerated",
            original_design_id=str(design_id),
            new_design_id=str(new_design.id),
            user_id=user_id,
        )
        return new_design

    async def get_design(self, design_id: uuid.UUID, user_id: str) -> Design:
        return await ensure_design_owner(self.session, design_id, user_id)

    async def list_designs(
        self,
        user_id: str,
        filters: DesignFilters,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> DesignListResponse:
        if filters.project_id is not None:
            await ensure_project_owner(self.session, filters.project_id, user_id)
        items, total = await self.designs.list_for_user(
            user_id, filters, offset=(page - 1) * limit, limit=limit
        )
        return DesignListResponse(
            items=[DesignResponse.from_row(d) for d in items],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit) if limit else 0,
            ),
        )

    async def list_room_designs(self, room_id: uuid.UUID, user_id: str) -> list[Design]:
        await ensure_room_owner(self.session, room_id, user_id)
        return await self.designs.list_for_room(room_id)

    async def delete_design(self, design_id: uuid.UUID, user_id: str) -> None:
        design = await ensure_design_owner(self.session, design_id, user_id)
        await self.designs.delete(design.id)
        await self.session.commit()
        logger.info(
            "design_deleted",
            design_id=str(design_id),
            room_id=str(design.room_id),
            user_id=user_id,
            status=design.status,
        )

    async def get_design_stats(self, user_id: str) -> DesignStats:
        rows = await self.designs.list_with_context(user_id)

        by_status: Counter[str] = Counter()
        by_provider: Counter[str] = Counter()
        by_room_type: Counter[str] = Counter()
        completed_times: list[int] = []
        for design, room_type, _, _ in rows:
            by_status[design.status] += 1
            by_provider[design.ai_provider] += 1
            by_room_type[room_type] += 1
            if design.status == DesignStatus.COMPLETED and design.processing_time:
                completed_times.append(design.processing_time)

        completed = by_status[DesignStatus.COMPLETED.value]
        failed = by_status[DesignStatus.FAILED.value]
        processed = completed + failed

        return DesignStats(
            total_designs=len(rows),
            designs_by_status=dict(by_status),
            designs_by_provider=dict(by_provider),
            designs_by_room_type=dict(by_room_type),
            average_processing_time=(
                _round_half_up(sum(completed_times) / len(completed_times)) if completed_times else 0
            ),
            success_rate=_round_half_up(completed / processed * 100) if processed else 0,
            recent_designs=[
                RecentDesign(
                    id=design.id,
                    status=DesignStatus(design.status),
                    ai_provider=design.ai_provider,
                    room_name=room_name,
                    project_name=project_name,
                    created_at=design.created_at,
                    processing_time=design.processing_time,
                )
                for design, _, room_name, project_name in rows[:RECENT_DESIGNS_LIMIT]
            ],
        )
