"""Request/response schemas for dare endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from dare2earn.db.base import MAX_ID

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateDareRequest(BaseModel):
    """Create a dare. Naive timestamps are taken as UTC.

    The media type is also accepted as ``required_media_type``, the name the
    admin dashboard sends.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    entry_fee: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    category_id: int | None = Field(None, ge=1, le=MAX_ID)
    start_time: datetime
    end_time: datetime
    submission_type: Literal["video", "image", "text"] = Field(
        "video", validation_alias=AliasChoices("submission_type", "required_media_type")
    )

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)


class UpdateDareRequest(CreateDareRequest):
    """Replace a dare's editable fields (admin)."""


class SubmitRequest(BaseModel):
    """Submit proof for a joined dare."""

    submission_url: str = Field(..., min_length=1)
    submission_caption: str | None = None


class VoteRequest(BaseModel):
    """Vote for a participant's submission."""

    is_boosted_vote: bool = False


class StatusChangeRequest(BaseModel):
    """Admin status change."""

    status: Literal["open", "closed", "completed", "cancelled"]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None = None


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]


class DareResponse(BaseModel):
    """A dare with its listing aggregates."""

    id: int
    title: str
    description: str
    created_by_user_id: int
    entry_fee: Decimal
    category_id: int | None = None
    prize_pool: Decimal
    start_time: datetime
    end_time: datetime
    status: str
    submission_type: str
    created_at: datetime
    updated_at: datetime
    creator_username: str | None = None
    creator_full_name: str | None = None
    category_name: str | None = None
    participant_count: int = 0


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., serialization_alias="totalPages")


class DareListResponse(BaseModel):
    dares: list[DareResponse]
    pagination: PaginationResponse


class ParticipantResponse(BaseModel):
    """A participant as shown on a dare's leaderboard."""

    id: int
    dare_id: int
    user_id: int
    submission_url: str | None = None
    submission_caption: str | None = None
    votes_count: int
    created_at: datetime
    updated_at: datetime
    username: str | None = None
    full_name: str | None = None
    profile_pic_url: str | None = None


class DareDetailResponse(BaseModel):
    dare: DareResponse
    participants: list[ParticipantResponse]


class DareEnvelope(BaseModel):
    success: bool = True
    message: str
    dare: DareResponse


class ActionResponse(BaseModel):
    success: bool = True
    message: str
