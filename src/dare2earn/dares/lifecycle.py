"""Dare lifecycle engine: state machine, joins, submissions and votes.

Dare states: open -> closed | completed | cancelled. The three terminal states
have no outgoing transitions. A participant is ``joined`` until it carries a
submission; resubmitting overwrites the previous one.

Every function runs inside the caller's transaction and flushes without
committing, so a raised error leaves no partial writes behind.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from dare2earn.db.models import (
    DARE_STATUSES,
    SUBMISSION_TYPES,
    Category,
    Dare,
    DareParticipant,
    Transaction,
    Vote,
)
from dare2earn.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    SelfVoteError,
    ValidationError,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

VALID_TRANSITIONS: dict[str, list[str]] = {
    "open": ["closed", "completed", "cancelled"],
    "closed": [],
    "completed": [],
    "cancelled": [],
}


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a dare status transition.

    Raises:
        ValidationError: If ``target_status`` is not a known status.
        InvalidStateError: If the transition is not allowed.
    """
    if target_status not in DARE_STATUSES:
        msg = f"Unknown dare status: {target_status}"
        raise ValidationError(msg)
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        msg = f"Invalid transition: {current_status} -> {target_status}. Valid transitions: {valid}"
        raise InvalidStateError(msg)


async def get_dare(db: AsyncSession, dare_id: int, *, for_update: bool = False) -> Dare:
    """Get a dare by ID or raise NotFoundError."""
    stmt = select(Dare).where(Dare.id == dare_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    dare = result.scalar_one_or_none()
    if dare is None:
        msg = "Dare not found"
        raise NotFoundError(msg)
    return dare


# ---------------------------------------------------------------------------
# Creation and status
# ---------------------------------------------------------------------------


async def _validate_dare_fields(
    db: AsyncSession,
    entry_fee: Decimal,
    category_id: int | None,
    start_time: datetime,
    end_time: datetime,
    submission_type: str,
) -> tuple[datetime, datetime]:
    """Shared checks for creating and editing a dare. Returns the window in UTC."""
    if entry_fee < 0:
        msg = "Entry fee must be non-negative"
        raise ValidationError(msg)

    start_time = as_utc(start_time)
    end_time = as_utc(end_time)
    if start_time >= end_time:
        msg = "End time must be after start time"
        raise ValidationError(msg)

    if submission_type not in SUBMISSION_TYPES:
        msg = f"Submission type must be one of {', '.join(SUBMISSION_TYPES)}"
        raise ValidationError(msg)

    if category_id is not None:
        found = await db.execute(select(Category.id).where(Category.id == category_id))
        if found.first() is None:
            msg = "Category not found"
            raise ValidationError(msg)

    return start_time, end_time


async def create_dare(
    db: AsyncSession,
    creator_id: int,
    title: str,
    description: str,
    entry_fee: Decimal,
    category_id: int | None,
    start_time: datetime,
    end_time: datetime,
    submission_type: str = "video",
) -> Dare:
    """
    Create an open dare with an empty prize pool.

    Raises:
        ValidationError: If the fee is negative, the window is empty or
            reversed, the category is unknown, or the submission type is invalid.
    """
    start_time, end_time = await _validate_dare_fields(
        db, entry_fee, category_id, start_time, end_time, submission_type
    )

    now = datetime.now(timezone.utc)
    dare = Dare(
        title=title,
        description=description,
        created_by_user_id=creator_id,
        entry_fee=entry_fee,
        category_id=category_id,
        prize_pool=Decimal("0"),
        start_time=start_time,
        end_time=end_time,
        status="open",
        submission_type=submission_type,
        created_at=now,
        updated_at=now,
    )
    db.add(dare)
    await db.flush()
    logger.info("dare_created", dare_id=dare.id, creator_id=creator_id, entry_fee=str(entry_fee))
    return dare


async def update_dare(
    db: AsyncSession,
    dare_id: int,
    title: str,
    description: str,
    entry_fee: Decimal,
    category_id: int | None,
    start_time: datetime,
    end_time: datetime,
    submission_type: str = "video",
) -> Dare:
    """
    Replace a dare's editable fields. Status, creator and prize pool are kept.

    The prize pool is the sum of the fees already paid, so the fee is frozen
    once anyone has joined.

    Raises:
        NotFoundError: If the dare does not exist.
        ValidationError: On the same field checks as ``create_dare``.
        InvalidStateError: If the fee changes after the first join.
    """
    dare = await get_dare(db, dare_id, for_update=True)
    start_time, end_time = await _validate_dare_fields(
        db, entry_fee, category_id, start_time, end_time, submission_type
    )

    if entry_fee != dare.entry_fee:
        joined = await db.execute(select(func.count(DareParticipant.id)).where(DareParticipant.dare_id == dare_id))
        if joined.scalar_one() > 0:
            msg = "Entry fee cannot change once participants have joined"
            raise InvalidStateError(msg)

    dare.title = title
    dare.description = description
    dare.entry_fee = entry_fee
    dare.category_id = category_id
    dare.start_time = start_time
    dare.end_time = end_time
    dare.submission_type = submission_type
    dare.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("dare_updated", dare_id=dare_id, entry_fee=str(entry_fee))
    return dare


async def delete_dare(db: AsyncSession, dare_id: int) -> None:
    """
    Delete a dare with its participants and their votes.

    Users are untouched. Ledger rows keep their history with ``dare_id``
    cleared. Children are removed explicitly so the result does not depend on
    the backend enforcing ``ON DELETE`` rules.

    Raises:
        NotFoundError: If the dare does not exist.
    """
    await get_dare(db, dare_id, for_update=True)

    participant_ids = select(DareParticipant.id).where(DareParticipant.dare_id == dare_id)
    votes = await db.execute(
        delete(Vote)
        .where(Vote.dare_participant_id.in_(participant_ids))
        .execution_options(synchronize_session=False)
    )
    participants = await db.execute(
        delete(DareParticipant)
        .where(DareParticipant.dare_id == dare_id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Transaction)
        .where(Transaction.dare_id == dare_id)
        .values(dare_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(Dare).where(Dare.id == dare_id).execution_options(synchronize_session=False))
    await db.flush()
    logger.info(
        "dare_deleted",
        dare_id=dare_id,
        participants=int(participants.rowcount or 0),
        votes=int(votes.rowcount or 0),
    )


async def transition_status(db: AsyncSession, dare_id: int, target_status: str) -> Dare:
    """Move a dare to ``target_status`` if the state machine allows it."""
    dare = await get_dare(db, dare_id, for_update=True)
    validate_transition(dare.status, target_status)

    previous = dare.status
    dare.status = target_status
    dare.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("dare_status_changed", dare_id=dare_id, previous=previous, status=target_status)
    return dare


# ---------------------------------------------------------------------------
# Participation
# ---------------------------------------------------------------------------


async def _has_joined(db: AsyncSession, dare_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(DareParticipant.id)
        .where(DareParticipant.dare_id == dare_id)
        .where(DareParticipant.user_id == user_id)
    )
    return result.first() is not None


async def _has_voted(db: AsyncSession, participant_id: int, voter_id: int) -> bool:
    result = await db.execute(
        select(Vote.id)
        .where(Vote.dare_participant_id == participant_id)
        .where(Vote.voter_user_id == voter_id)
    )
    return result.first() is not None


async def join_dare(db: AsyncSession, dare_id: int, user_id: int) -> DareParticipant:
    """
    Enroll ``user_id`` in a dare and add the entry fee to its prize pool.

    The dare row is locked for the duration of the transaction. The unique
    constraint on (dare_id, user_id) is the final word on duplicates; the
    pre-check only gives a cheaper failure path.

    Raises:
        NotFoundError: If the dare does not exist.
        InvalidStateError: If the dare is not open or has already ended.
        ConflictError: If the user has already joined.
    """
    dare = await get_dare(db, dare_id, for_update=True)

    if dare.status != "open":
        msg = "This dare is no longer accepting participants"
        raise InvalidStateError(msg)

    now = datetime.now(timezone.utc)
    if now > as_utc(dare.end_time):
        msg = "This dare has already ended"
        raise InvalidStateError(msg)

    if await _has_joined(db, dare_id, user_id):
        msg = "You have already joined this dare"
        raise ConflictError(msg)

    participant = DareParticipant(
        dare_id=dare_id,
        user_id=user_id,
        votes_count=0,
        created_at=now,
        updated_at=now,
    )
    db.add(participant)
    try:
        await db.flush()
    except IntegrityError as e:
        msg = "You have already joined this dare"
        raise ConflictError(msg) from e

    await db.execute(
        update(Dare)
        .where(Dare.id == dare_id)
        .values(prize_pool=Dare.prize_pool + dare.entry_fee, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(dare)

    logger.info("dare_joined", dare_id=dare_id, user_id=user_id, entry_fee=str(dare.entry_fee))
    return participant


async def submit(
    db: AsyncSession,
    dare_id: int,
    user_id: int,
    submission_url: str,
    caption: str | None = None,
) -> DareParticipant:
    """
    Record (or replace) a participant's submission.

    Raises:
        ForbiddenError: If the user has not joined the dare.
    """
    result = await db.execute(
        select(DareParticipant)
        .where(DareParticipant.dare_id == dare_id)
        .where(DareParticipant.user_id == user_id)
    )
    participant = result.scalar_one_or_none()
    if participant is None:
        msg = "You must join the dare before submitting"
        raise ForbiddenError(msg)

    participant.submission_url = submission_url
    participant.submission_caption = caption or ""
    participant.updated_at = datetime.now(timezone.utc)
    await db.flush()

    logger.info("submission_recorded", dare_id=dare_id, user_id=user_id, participant_id=participant.id)
    return participant


async def vote(
    db: AsyncSession,
    participant_id: int,
    voter_id: int,
    is_boosted: bool = False,
) -> Vote:
    """
    Cast one vote for a participant's submission.

    The vote row and the ``votes_count`` increment are written in the same
    transaction; no trigger maintains the count.

    Raises:
        NotFoundError: If the participant does not exist.
        SelfVoteError: If the voter owns the submission.
        ConflictError: If the voter has already voted for it.
    """
    result = await db.execute(
        select(DareParticipant).where(DareParticipant.id == participant_id).with_for_update()
    )
    participant = result.scalar_one_or_none()
    if participant is None:
        msg = "Participant not found"
        raise NotFoundError(msg)

    if participant.user_id == voter_id:
        msg = "You cannot vote for yourself"
        raise SelfVoteError(msg)

    if await _has_voted(db, participant_id, voter_id):
        msg = "You have already voted for this submission"
        raise ConflictError(msg)

    ballot = Vote(
        dare_participant_id=participant_id,
        voter_user_id=voter_id,
        is_boosted_vote=is_boosted,
        created_at=datetime.now(timezone.utc),
    )
    db.add(ballot)
    try:
        await db.flush()
    except IntegrityError as e:
        msg = "You have already voted for this submission"
        raise ConflictError(msg) from e

    await db.execute(
        update(DareParticipant)
        .where(DareParticipant.id == participant_id)
        .values(votes_count=DareParticipant.votes_count + 1)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(participant)

    logger.info("vote_cast", participant_id=participant_id, voter_id=voter_id, boosted=is_boosted)
    return ballot
