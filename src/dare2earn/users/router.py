"""User dashboard endpoints: own dares, participations, ledger, notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.auth.dependencies import Identity, get_current_identity
from dare2earn.dares.queries import list_created_dares, list_participations
from dare2earn.dares.router import dare_row_response
from dare2earn.dares.schemas import ActionResponse
from dare2earn.database import get_session
from dare2earn.db.base import MAX_ID
from dare2earn.errors import NotFoundError
from dare2earn.users.schemas import (
    MyDaresResponse,
    NotificationListResponse,
    NotificationResponse,
    ParticipationListResponse,
    ParticipationResponse,
    TransactionListResponse,
    TransactionResponse,
)
from dare2earn.users.service import list_notifications, list_transactions, mark_notification_read

router = APIRouter(prefix="/api", tags=["Users"])


@router.get("/users/my-dares", response_model=MyDaresResponse)
async def my_dares(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> MyDaresResponse:
    """Dares created by the caller."""
    rows = await list_created_dares(db, identity.id)
    return MyDaresResponse(dares=[dare_row_response(row) for row in rows])


@router.get("/users/my-participations", response_model=ParticipationListResponse)
async def my_participations(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ParticipationListResponse:
    """Dares the caller has joined."""
    rows = await list_participations(db, identity.id)
    return ParticipationListResponse(
        participations=[
            ParticipationResponse(
                id=row.DareParticipant.id,
                dare_id=row.DareParticipant.dare_id,
                submission_url=row.DareParticipant.submission_url,
                submission_caption=row.DareParticipant.submission_caption,
                votes_count=row.DareParticipant.votes_count,
                created_at=row.DareParticipant.created_at,
                updated_at=row.DareParticipant.updated_at,
                dare_title=row.dare_title,
                dare_description=row.dare_description,
                dare_status=row.dare_status,
                end_time=row.end_time,
                category_name=row.category_name,
            )
            for row in rows
        ]
    )


@router.get("/users/my-transactions", response_model=TransactionListResponse)
async def my_transactions(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> TransactionListResponse:
    """The caller's ledger entries."""
    transactions = await list_transactions(db, identity.id)
    return TransactionListResponse(
        transactions=[
            TransactionResponse(
                id=t.id,
                dare_id=t.dare_id,
                type=t.type,
                amount=t.amount,
                status=t.status,
                description=t.description,
                created_at=t.created_at,
            )
            for t in transactions
        ]
    )


@router.get("/users/my-notifications", response_model=NotificationListResponse)
async def my_notifications(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    """The caller's 50 most recent notifications."""
    notifications = await list_notifications(db, identity.id)
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                id=n.id,
                title=n.title,
                message=n.message,
                type=n.type,
                is_read=n.is_read,
                created_at=n.created_at,
            )
            for n in notifications
        ]
    )


@router.put("/notifications/{notification_id}/read", response_model=ActionResponse)
async def read_notification(
    notification_id: int = Path(..., ge=1, le=MAX_ID),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActionResponse:
    """Mark one of the caller's notifications as read."""
    found = await mark_notification_read(db, identity.id, notification_id)
    if not found:
        msg = "Notification not found"
        raise NotFoundError(msg)
    await db.commit()
    return ActionResponse(message="Notification marked as read")
