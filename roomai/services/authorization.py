"""Ownership gate for projects, rooms and designs.

Every check loads the resource together with its ownership chain
(Design -> Room -> Project -> user_id) and raises:

- NotFoundError when the resource does not exist
- AccessDeniedError when it exists but belongs to another user

Callers run the gate before any mutation or detail-revealing read, and the
design service runs it before a PENDING design is ever created.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from roomai.errors import AccessDeniedError, NotFoundError
from roomai.models.db import Design, Project, Room
from roomai.repositories.designs import DesignRepository
from roomai.repositories.rooms import ProjectRepository, RoomRepository

logger = structlog.get_logger()


def _require_owner(owner_id: str, user_id: str, *, resource: str, resource_id: uuid.UUID) -> None:
    if owner_id != user_id:
        logger.warning("access_denied", resource=resource, resource_id=str(resource_id), user_id=user_id)
        raise AccessDeniedError(f"Access denied. You can only access your own {resource}s.")


async def ensure_project_owner(session: AsyncSession, project_id: uuid.UUID, user_id: str) -> Project:
    project = await ProjectRepository(session).get(project_id)
    if project is None:
        raise NotFoundError("Project not found", error="project_not_found")
    _require_owner(project.user_id, user_id, resource="project", resource_id=project_id)
    return project


async def ensure_room_owner(session: AsyncSession, room_id: uuid.UUID, user_id: str) -> Room:
    """Returns the room with ``room.project`` loaded."""
    room = await RoomRepository(session).get_with_project(room_id)
    if room is None:
        raise NotFoundError("Room not found", error="room_not_found")
    _require_owner(room.project.user_id, user_id, resource="room", resource_id=room_id)
    return room


async def ensure_design_owner(session: AsyncSession, design_id: uuid.UUID, user_id: str) -> Design:
    """Returns the design with ``design.room.project`` loaded."""
    design = await DesignRepository(session).get_with_chain(design_id)
    if design is None:
        raise NotFoundError("Design not found", error="design_not_found")
    _require_owner(design.room.project.user_id, user_id, resource="design", resource_id=design_id)
    return design
