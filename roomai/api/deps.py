"""Request dependencies shared by the API routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from roomai.database import get_db
from roomai.errors import AuthenticationError
from roomai.services.designs import DesignService
from roomai.services.generation_job import DesignGenerationJob


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Caller identity, as asserted by the upstream auth layer."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationError("Authentication required")
    return user_id


def get_job(request: Request) -> DesignGenerationJob:
    return request.app.state.generation_job


async def get_design_service(
    session: Annotated[AsyncSession, Depends(get_db)],
    job: Annotated[DesignGenerationJob, Depends(get_job)],
) -> DesignService:
    return DesignService(session, job)


CurrentUser = Annotated[str, Depends(get_current_user_id)]
Designs = Annotated[DesignService, Depends(get_design_service)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
