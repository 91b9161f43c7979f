"""Design API endpoints.

``POST /designs/generate`` answers 201 with the new design in PENDING; clients poll
``GET /designs/{id}`` until ``status`` is COMPLETED or FAILED.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Query

from roomai.api.deps import CurrentUser, Designs
from roomai.models.contracts import (
    AIProvider,
    DesignDetailResponse,
    DesignFilters,
    DesignListResponse,
    DesignResponse,
    DesignStats,
    DesignStatus,
    ErrorResponse,
    GenerateDesignRequest,
    RegenerateDesignRequest,
)

router = APIRouter(prefix="/designs", tags=["designs"])

_NOT_FOUND = {404: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


@router.post(
    "/generate",
    status_code=201,
    response_model=DesignResponse,
    responses={**_NOT_FOUND, 401: {"model": ErrorResponse}},
)
async def generate_design(
    body: GenerateDesignRequest, user_id: CurrentUser, service: Designs
) -> DesignResponse:
    """Create a PENDING design for a room and start generating it."""
    design = await service.initiate_generation(
        user_id,
        body.room_id,
        custom_prompt=body.custom_prompt,
        ai_provider=body.ai_provider,
    )
    return DesignResponse.from_row(design)


@router.get("", response_model=DesignListResponse, responses=_NOT_FOUND)
async def list_designs(
    user_id: CurrentUser,
    service: Designs,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=50)] = 20,
    project_id: Annotated[uuid.UUID | None, Query(alias="projectId")] = None,
    room_id: Annotated[uuid.UUID | None, Query(alias="roomId")] = None,
    status: DesignStatus | None = None,
    ai_provider: Annotated[AIProvider | None, Query(alias="aiProvider")] = None,
) -> DesignListResponse:
    filters = DesignFilters(
        project_id=project_id, room_id=room_id, status=status, ai_provider=ai_provider
    )
    return await service.list_designs(user_id, filters, page=page, limit=limit)


@router.get("/stats", response_model=DesignStats)
async def design_stats(user_id: CurrentUser, service: Designs) -> DesignStats:
    return await service.get_design_stats(user_id)


@router.get(
    "/room/{room_id}",
    response_model=list[DesignResponse],
    responses=_NOT_FOUND,
)
async def list_room_designs(
    room_id: uuid.UUID, user_id: CurrentUser, service: Designs
) -> list[DesignResponse]:
    designs = await service.list_room_designs(room_id, user_id)
    return [DesignResponse.from_row(d) for d in designs]


@router.get("/{design_id}", response_model=DesignDetailResponse, responses=_NOT_FOUND)
async def get_design(
    design_id: uuid.UUID, user_id: CurrentUser, service: Designs
) -> DesignDetailResponse:
    """Polling endpoint for generation progress."""
    design = await service.get_design(design_id, user_id)
    return DesignDetailResponse.from_row(design)


@router.delete("/{design_id}", status_code=204, responses=_NOT_FOUND)
async def delete_design(design_id: uuid.UUID, user_id: CurrentUser, service: Designs) -> None:
    await service.delete_design(design_id, user_id)


@router.post(
    "/{design_id}/regenerate",
    status_code=201,
    response_model=DesignResponse,
    responses=_NOT_FOUND,
)
async def regenerate_design(
    design_id: uuid.UUID,
    user_id: CurrentUser,
    service: Designs,
    body: RegenerateDesignRequest | None = None,
) -> DesignResponse:
    """Generate a fresh sibling design for the same room."""
    design = await service.regenerate_design(design_id, user_id, body)
    return DesignResponse.from_row(design)
