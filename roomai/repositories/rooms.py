import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomai.models.db import Project, Room
from roomai.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Project)


class RoomRepository(BaseRepository[Room]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Room)

    async def get_with_project(self, room_id: uuid.UUID) -> Room | None:
        """Load a room with its project, which carries the owner and the style."""
        stmt = select(Room).options(selectinload(Room.project)).where(Room.id == room_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_original_image(
        self, room: Room, *, url: str | None, image_id: str | None
    ) -> Room:
        room.original_image_url = url
        room.original_image_id = image_id
        await self.session.flush()
        return room
