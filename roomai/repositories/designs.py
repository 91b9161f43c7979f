"""Design record store.

Besides plain reads, writes are transition-shaped: each ``mark_*`` method
checks the row's current status and refuses to move it out of a terminal
state. The generation job is the only caller of those methods for a given
design id, so no locking or version column is involved.
"""

from __future__ import annotations

import uuid
from collections.abc import Collection
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomai.errors import InvalidTransitionError, NotFoundError
from roomai.models.contracts import ACTIVE_STATUSES, DesignFilters, DesignStatus
from roomai.models.db import Design, Project, Room
from roomai.repositories.base import BaseRepository


class DesignRepository(BaseRepository[Design]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Design)

    async def create_pending(
        self, *, room_id: uuid.UUID, ai_provider: str, prompt: str = ""
    ) -> Design:
        return await self.create(
            room_id=room_id,
            ai_provider=ai_provider,
            prompt=prompt,
            image_url="",
            status=DesignStatus.PENDING.value,
        )

    async def get_with_chain(self, design_id: uuid.UUID) -> Design | None:
        """Load a design with its room and the room's project."""
        stmt = (
            select(Design)
            .options(selectinload(Design.room).selectinload(Room.project))
            .where(Design.id == design_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, design_id: uuid.UUID, **fields: Any) -> Design:
        """Patch the given attributes. Raises NotFoundError if the row is gone."""
        design = await self.session.get(Design, design_id, populate_existing=True)
        if design is None:
            raise NotFoundError("Design not found", error="design_not_found")
        for name, value in fields.items():
            setattr(design, name, value)
        await self.session.flush()
        return design

    async def _transition(
        self,
        design_id: uuid.UUID,
        allowed_from: Collection[DesignStatus],
        to: DesignStatus,
        **fields: Any,
    ) -> Design:
        design = await self.session.get(Design, design_id, populate_existing=True)
        if design is None:
            raise NotFoundError("Design not found", error="design_not_found")
        if design.status not in allowed_from:
            raise InvalidTransitionError(
                f"Cannot move design {design_id} from {design.status} to {to.value}"
            )
        return await self.update(design_id, status=to.value, **fields)

    async def mark_processing(self, design_id: uuid.UUID) -> Design:
        return await self._transition(
            design_id, {DesignStatus.PENDING}, DesignStatus.PROCESSING
        )

    async def mark_completed(
        self,
        design_id: uuid.UUID,
        *,
        image_url: str,
        prompt: str,
        metadata: dict,
        processing_time: int,
    ) -> Design:
        return await self._transition(
            design_id,
            {DesignStatus.PROCESSING},
            DesignStatus.COMPLETED,
            image_url=image_url,
            prompt=prompt,
            metadata_=metadata,
            processing_time=processing_time,
            error=None,
        )

    async def mark_failed(
        self,
        design_id: uuid.UUID,
        *,
        error: str,
        processing_time: int | None = None,
    ) -> Design:
        fields: dict[str, Any] = {"error": error}
        if processing_time is not None:
            fields["processing_time"] = processing_time
        return await self._transition(design_id, ACTIVE_STATUSES, DesignStatus.FAILED, **fields)

    async def list_for_user(
        self,
        user_id: str,
        filters: DesignFilters,
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[Design], int]:
        """Designs whose room belongs to one of ``user_id``'s projects, newest first."""
        conditions = [Project.user_id == user_id]
        if filters.project_id is not None:
            conditions.append(Project.id == filters.project_id)
        if filters.room_id is not None:
            conditions.append(Design.room_id == filters.room_id)
        if filters.status is not None:
            conditions.append(Design.status == filters.status.value)
        if filters.ai_provider is not None:
            conditions.append(Design.ai_provider == filters.ai_provider)

        base = (
            select(Design)
            .join(Room, Design.room_id == Room.id)
            .join(Project, Room.project_id == Project.id)
            .where(*conditions)
        )
        count_stmt = select(func.count()).select_from(base.subquery())
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = base.order_by(Design.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def list_for_room(self, room_id: uuid.UUID) -> list[Design]:
        stmt = select(Design).where(Design.room_id == room_id).order_by(Design.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_with_context(self, user_id: str) -> list[tuple[Design, str, str | None, str]]:
        """(design, room type, room name, project name) for every design of a user."""
        stmt = (
            select(Design, Room.type, Room.name, Project.name)
            .join(Room, Design.room_id == Room.id)
            .join(Project, Room.project_id == Project.id)
            .where(Project.user_id == user_id)
            .order_by(Design.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1], row[2], row[3]) for row in result.all()]

    async def find_stale_ids(self, updated_before: datetime) -> list[uuid.UUID]:
        """Ids of designs still PENDING/PROCESSING whose last write predates the cutoff."""
        stmt = select(Design.id).where(
            Design.status.in_([s.value for s in ACTIVE_STATUSES]),
            Design.updated_at < updated_before,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
