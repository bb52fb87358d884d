"""Response schemas for the user dashboard endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from dare2earn.dares.schemas import DareResponse


class MyDaresResponse(BaseModel):
    dares: list[DareResponse]


class ParticipationResponse(BaseModel):
    """One dare the user has joined, with their submission state."""

    id: int
    dare_id: int
    submission_url: str | None = None
    submission_caption: str | None = None
    votes_count: int
    created_at: datetime
    updated_at: datetime
    dare_title: str
    dare_description: str
    dare_status: str
    end_time: datetime
    category_name: str | None = None


class ParticipationListResponse(BaseModel):
    participations: list[ParticipationResponse]


class TransactionResponse(BaseModel):
    id: int
    dare_id: int | None = None
    type: str
    amount: Decimal
    status: str
    description: str | None = None
    created_at: datetime


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str | None = None
    type: str
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
