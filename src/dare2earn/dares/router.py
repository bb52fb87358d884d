"""Dare API endpoints: listing, detail, create, edit, delete, join, submit, vote, status."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import Row
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.auth.dependencies import Identity, get_current_identity, require_admin
from dare2earn.config import get_settings
from dare2earn.dares import lifecycle
from dare2earn.dares.pagination import MAX_PAGE
from dare2earn.dares.queries import get_dare_detail, list_categories, list_dares
from dare2earn.dares.schemas import (
    ActionResponse,
    CategoryListResponse,
    CategoryResponse,
    CreateDareRequest,
    DareDetailResponse,
    DareEnvelope,
    DareListResponse,
    DareResponse,
    PaginationResponse,
    ParticipantResponse,
    StatusChangeRequest,
    SubmitRequest,
    UpdateDareRequest,
    VoteRequest,
)
from dare2earn.database import get_session
from dare2earn.db.base import MAX_ID
from dare2earn.db.models import Dare, DareParticipant

router = APIRouter(prefix="/api", tags=["Dares"])


def dare_response(dare: Dare, **aggregates: Any) -> DareResponse:  # noqa: ANN401
    """Build a DareResponse from a Dare plus optional listing aggregates."""
    return DareResponse(
        id=dare.id,
        title=dare.title,
        description=dare.description,
        created_by_user_id=dare.created_by_user_id,
        entry_fee=dare.entry_fee,
        category_id=dare.category_id,
        prize_pool=dare.prize_pool,
        start_time=dare.start_time,
        end_time=dare.end_time,
        status=dare.status,
        submission_type=dare.submission_type,
        created_at=dare.created_at,
        updated_at=dare.updated_at,
        **aggregates,
    )


def dare_row_response(row: Row[Any]) -> DareResponse:
    """Build a DareResponse from a listing row (see dare2earn.dares.queries)."""
    return dare_response(
        row.Dare,
        creator_username=row.creator_username,
        creator_full_name=row.creator_full_name,
        category_name=row.category_name,
        participant_count=int(row.participant_count or 0),
    )


def _participant_response(row: Row[Any]) -> ParticipantResponse:
    p: DareParticipant = row.DareParticipant
    return ParticipantResponse(
        id=p.id,
        dare_id=p.dare_id,
        user_id=p.user_id,
        submission_url=p.submission_url,
        submission_caption=p.submission_caption,
        votes_count=p.votes_count,
        created_at=p.created_at,
        updated_at=p.updated_at,
        username=row.username,
        full_name=row.full_name,
        profile_pic_url=row.profile_pic_url,
    )


# ── Categories ──


@router.get("/categories", response_model=CategoryListResponse)
async def get_categories(db: AsyncSession = Depends(get_session)) -> CategoryListResponse:
    """All dare categories."""
    categories = await list_categories(db)
    return CategoryListResponse(
        categories=[CategoryResponse(id=c.id, name=c.name, description=c.description) for c in categories]
    )


# ── Dares ──


@router.get("/dares", response_model=DareListResponse)
async def get_dares(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int | None = Query(None, ge=1),
    status: str | None = Query(None),
    category_id: int | None = Query(None, ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_session),
) -> DareListResponse:
    """Paginated dare listing, newest first."""
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    result = await list_dares(db, page=page, limit=limit, status=status, category_id=category_id)
    return DareListResponse(
        dares=[dare_row_response(row) for row in result.items],
        pagination=PaginationResponse(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("/dares/{dare_id}", response_model=DareDetailResponse)
async def get_dare(
    dare_id: int = Path(..., ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_session),
) -> DareDetailResponse:
    """A dare with its participants in ranking order."""
    dare_row, participants = await get_dare_detail(db, dare_id)
    return DareDetailResponse(
        dare=dare_row_response(dare_row),
        participants=[_participant_response(row) for row in participants],
    )


@router.post("/dares", response_model=DareEnvelope, status_code=201)
async def create_dare(
    body: CreateDareRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> DareEnvelope:
    """Create a dare owned by the caller."""
    dare = await lifecycle.create_dare(
        db,
        creator_id=identity.id,
        title=body.title,
        description=body.description,
        entry_fee=body.entry_fee,
        category_id=body.category_id,
        start_time=body.start_time,
        end_time=body.end_time,
        submission_type=body.submission_type,
    )
    await db.commit()
    return DareEnvelope(message="Dare created successfully", dare=dare_response(dare))


@router.post("/dares/{dare_id}/join", response_model=ActionResponse)
async def join_dare(
    dare_id: int = Path(..., ge=1, le=MAX_ID),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActionResponse:
    """Join a dare. The entry fee is added to its prize pool."""
    await lifecycle.join_dare(db, dare_id, identity.id)
    await db.commit()
    return ActionResponse(message="Successfully joined the dare")


@router.post("/dares/{dare_id}/submit", response_model=ActionResponse)
async def submit_to_dare(
    body: SubmitRequest,
    dare_id: int = Path(..., ge=1, le=MAX_ID),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActionResponse:
    """Submit (or replace) proof for a joined dare."""
    await lifecycle.submit(db, dare_id, identity.id, body.submission_url, body.submission_caption)
    await db.commit()
    return ActionResponse(message="Submission uploaded successfully")


@router.put("/dares/{dare_id}/status", response_model=DareEnvelope)
async def change_dare_status(
    body: StatusChangeRequest,
    dare_id: int = Path(..., ge=1, le=MAX_ID),
    _admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DareEnvelope:
    """Close, complete or cancel an open dare (admin only)."""
    dare = await lifecycle.transition_status(db, dare_id, body.status)
    await db.commit()
    return DareEnvelope(message=f"Dare status changed to {dare.status}", dare=dare_response(dare))


@router.put("/dares/{dare_id}", response_model=DareEnvelope)
async def update_dare(
    body: UpdateDareRequest,
    dare_id: int = Path(..., ge=1, le=MAX_ID),
    _admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DareEnvelope:
    """Edit a dare's details (admin only)."""
    dare = await lifecycle.update_dare(
        db,
        dare_id,
        title=body.title,
        description=body.description,
        entry_fee=body.entry_fee,
        category_id=body.category_id,
        start_time=body.start_time,
        end_time=body.end_time,
        submission_type=body.submission_type,
    )
    await db.commit()
    return DareEnvelope(message="Dare updated successfully", dare=dare_response(dare))


@router.delete("/dares/{dare_id}", response_model=ActionResponse)
async def delete_dare(
    dare_id: int = Path(..., ge=1, le=MAX_ID),
    _admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ActionResponse:
    """Delete a dare with its participants and votes (admin only)."""
    await lifecycle.delete_dare(db, dare_id)
    await db.commit()
    return ActionResponse(message="Dare deleted successfully")


# ── Votes ──


@router.post("/participants/{participant_id}/vote", response_model=ActionResponse)
async def vote_for_participant(
    participant_id: int = Path(..., ge=1, le=MAX_ID),
    body: VoteRequest | None = None,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActionResponse:
    """Vote for a participant's submission."""
    is_boosted = body.is_boosted_vote if body is not None else False
    await lifecycle.vote(db, participant_id, identity.id, is_boosted)
    await db.commit()
    return ActionResponse(message="Vote recorded successfully")
