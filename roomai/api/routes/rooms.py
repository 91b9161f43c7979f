"""Room source image endpoints.

The stored image becomes ``input_image_url`` for providers that accept one.
Replacing or clearing it deletes the previous object best-effort; a leftover
object in R2 is harmless.
"""

import asyncio
import uuid

import structlog
from fastapi import APIRouter, UploadFile

from roomai.api.deps import CurrentUser, DbSession
from roomai.config import settings
from roomai.errors import AppError, UploadValidationError
from roomai.models.contracts import ErrorResponse, RoomImageResponse
from roomai.models.db import Room
from roomai.repositories.rooms import RoomRepository
from roomai.services.authorization import ensure_room_owner
from roomai.utils import r2
from roomai.utils.image import inspect_image

logger = structlog.get_logger()

router = APIRouter(prefix="/rooms", tags=["rooms"])

_CHUNK_SIZE = 65_536


def _require_storage() -> None:
    if not r2.r2_configured():
        raise AppError(
            "Image storage is not configured",
            error="storage_unavailable",
            status_code=503,
            retryable=True,
        )


async def _read_limited(file: UploadFile) -> bytes:
    # Stream-read with early termination to avoid buffering unbounded uploads
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(_CHUNK_SIZE):
        total += len(chunk)
        if total > settings.max_upload_bytes:
            mb = settings.max_upload_bytes // (1024 * 1024)
            raise UploadValidationError(
                f"Image exceeds {mb} MB limit", error="file_too_large", status_code=413
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _room_image(room: Room) -> RoomImageResponse:
    return RoomImageResponse(
        room_id=room.id,
        original_image_url=room.original_image_url,
        original_image_id=room.original_image_id,
    )


@router.post(
    "/{room_id}/image",
    response_model=RoomImageResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def upload_room_image(
    room_id: uuid.UUID, file: UploadFile, user_id: CurrentUser, session: DbSession
) -> RoomImageResponse:
    """Upload -> validate -> store in R2 -> point the room at it."""
    room = await ensure_room_owner(session, room_id, user_id)
    _require_storage()

    data = await _read_limited(file)
    info = await asyncio.to_thread(inspect_image, data, file.content_type)

    artifact = await asyncio.to_thread(
        r2.store_image, data, prefix=f"rooms/{room_id}/original", content_type=info.content_type
    )
    previous_id = room.original_image_id
    try:
        await RoomRepository(session).set_original_image(
            room, url=artifact.url, image_id=artifact.id
        )
        await session.commit()
    except Exception:
        # Rollback: remove the orphaned object if the row was not updated
        await asyncio.to_thread(r2.delete_image, artifact.id)
        raise

    if previous_id and previous_id != artifact.id:
        await asyncio.to_thread(r2.delete_image, previous_id)

    logger.info(
        "room_image_uploaded",
        room_id=str(room_id),
        user_id=user_id,
        image_id=artifact.id,
        content_type=info.content_type,
        size_bytes=info.size,
        width=info.width,
        height=info.height,
    )
    return _room_image(room)


@router.delete(
    "/{room_id}/image",
    response_model=RoomImageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_room_image(
    room_id: uuid.UUID, user_id: CurrentUser, session: DbSession
) -> RoomImageResponse:
    room = await ensure_room_owner(session, room_id, user_id)
    previous_id = room.original_image_id

    await RoomRepository(session).set_original_image(room, url=None, image_id=None)
    await session.commit()

    if previous_id and r2.r2_configured():
        await asyncio.to_thread(r2.delete_image, previous_id)
    logger.info("room_image_deleted", room_id=str(room_id), user_id=user_id, image_id=previous_id)
    return _room_image(room)
