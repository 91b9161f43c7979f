"""RoomAI contract models.

Pydantic shapes shared by the HTTP layer, the design service, the generation
job and the provider adapters. Wire format is camelCase (``roomId``,
``imageUrl`` ...); Python code uses snake_case and populates by name.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from roomai.models.db import Design

# === Enumerations ===

AIProvider = Literal["openai", "replicate"]

RoomType = Literal[
    "LIVING_ROOM",
    "BEDROOM",
    "KITCHEN",
    "BATHROOM",
    "OFFICE",
    "DINING_ROOM",
    "BALCONY",
    "STUDY",
    "HALLWAY",
    "OTHER",
]

InteriorStyle = Literal[
    "ART_DECO",
    "BOHEMIAN",
    "COASTAL",
    "RUSTIC",
    "CONTEMPORARY",
    "ETHNIC",
    "INDUSTRIAL",
    "SCANDINAVIAN",
    "VINTAGE",
    "MINIMALIST",
]


class DesignStatus(StrEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


ACTIVE_STATUSES = frozenset({DesignStatus.PENDING, DesignStatus.PROCESSING})


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === Generation provider interface ===


class Dimensions(BaseModel):
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PromptInput(BaseModel):
    """Structured inputs a provider turns into its effective prompt."""

    room_type: str
    style: str
    dimensions: Dimensions
    materials: list[str] = []
    ambient_color: str | None = None
    custom_prompt: str | None = None
    # Complete prompt from an earlier generation, sent as is
    prompt_override: str | None = None


class GenerationOptions(BaseModel):
    provider: AIProvider
    input_image_url: str | None = None


class GenerationResult(BaseModel):
    image_urls: list[str] = Field(min_length=1)
    prompt: str
    metadata: dict = {}


class RoomSnapshot(BaseModel):
    """Read-only copy of a room (plus its project's style) taken at initiation."""

    model_config = ConfigDict(frozen=True)

    room_id: uuid.UUID
    room_type: RoomType
    style: InteriorStyle
    length: float
    width: float
    height: float
    materials: tuple[str, ...] = ()
    ambient_color: str | None = None
    original_image_url: str | None = None


# === Artifact store ===


class StoredArtifact(BaseModel):
    url: str
    id: str


# === API request models ===


class GenerateDesignRequest(CamelModel):
    room_id: uuid.UUID
    custom_prompt: str | None = Field(default=None, max_length=1000)
    ai_provider: AIProvider | None = None


class RegenerateDesignRequest(CamelModel):
    custom_prompt: str | None = Field(default=None, max_length=1000)
    ai_provider: AIProvider | None = None


class DesignFilters(CamelModel):
    project_id: uuid.UUID | None = None
    room_id: uuid.UUID | None = None
    status: DesignStatus | None = None
    ai_provider: AIProvider | None = None


# === API response models ===


class DesignResponse(CamelModel):
    id: uuid.UUID
    room_id: uuid.UUID
    image_url: str
    prompt: str
    ai_provider: str
    status: DesignStatus
    metadata: dict | None = None
    processing_time: int | None = None
    error: str | None = None
    all_image_urls: list[str] | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, design: Design) -> DesignResponse:
        metadata = design.metadata_
        all_image_urls = None
        if isinstance(metadata, dict) and metadata.get("allImageUrls"):
            all_image_urls = list(metadata["allImageUrls"])
        return cls(
            id=design.id,
            room_id=design.room_id,
            image_url=design.image_url,
            prompt=design.prompt,
            ai_provider=design.ai_provider,
            status=DesignStatus(design.status),
            metadata=metadata,
            processing_time=design.processing_time,
            error=design.error,
            all_image_urls=all_image_urls,
            created_at=design.created_at,
            updated_at=design.updated_at,
        )


class DesignRoom(CamelModel):
    """Room context shown on a single design read."""

    id: uuid.UUID
    name: str | None = None
    type: str
    dimensions: Dimensions
    project_style: str


class DesignDetailResponse(DesignResponse):
    room: DesignRoom

    @classmethod
    def from_row(cls, design: Design) -> DesignDetailResponse:
        """Needs ``design.room.project`` loaded."""
        room = design.room
        return cls(
            **DesignResponse.from_row(design).model_dump(),
            room=DesignRoom(
                id=room.id,
                name=room.name,
                type=room.type,
                dimensions=Dimensions(length=room.length, width=room.width, height=room.height),
                project_style=room.project.style,
            ),
        )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class DesignListResponse(CamelModel):
    items: list[DesignResponse]
    pagination: Pagination


class RecentDesign(CamelModel):
    id: uuid.UUID
    status: DesignStatus
    ai_provider: str
    room_name: str | None = None
    project_name: str
    created_at: datetime
    processing_time: int | None = None


class DesignStats(CamelModel):
    total_designs: int
    designs_by_status: dict[str, int]
    designs_by_provider: dict[str, int]
    designs_by_room_type: dict[str, int]
    average_processing_time: int
    success_rate: int
    recent_designs: list[RecentDesign]


class RoomImageResponse(CamelModel):
    room_id: uuid.UUID
    original_image_url: str | None = None
    original_image_id: str | None = None


class ErrorResponse(BaseModel):
    error: str
    message: str
    retryable: bool
    detail: str | None = None
