"""Read-side queries over dares, participants and categories."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import ColumnElement, Row, Select, func, select

from dare2earn.dares.pagination import Page, page_offset
from dare2earn.db.models import Category, Dare, DareParticipant, User
from dare2earn.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def _dare_filters(status: str | None, category_id: int | None) -> list[ColumnElement[bool]]:
    """Listing predicate. The page query and the count query both use this."""
    filters: list[ColumnElement[bool]] = []
    if status is not None:
        filters.append(Dare.status == status)
    if category_id is not None:
        filters.append(Dare.category_id == category_id)
    return filters


def _dare_rows() -> Select:  # type: ignore[type-arg]
    """Dare plus creator, category name and participant count (0 when none)."""
    counts = (
        select(DareParticipant.dare_id, func.count(DareParticipant.id).label("count"))
        .group_by(DareParticipant.dare_id)
        .subquery("participant_count")
    )
    return (
        select(
            Dare,
            User.username.label("creator_username"),
            User.full_name.label("creator_full_name"),
            Category.name.label("category_name"),
            func.coalesce(counts.c.count, 0).label("participant_count"),
        )
        .outerjoin(User, Dare.created_by_user_id == User.id)
        .outerjoin(Category, Dare.category_id == Category.id)
        .outerjoin(counts, Dare.id == counts.c.dare_id)
    )


async def list_dares(
    db: AsyncSession,
    page: int = 1,
    limit: int = 20,
    status: str | None = None,
    category_id: int | None = None,
) -> Page[Row[Any]]:
    """
    Fetch one page of dares, newest first.

    Each row carries the ``Dare`` plus ``creator_username``,
    ``creator_full_name``, ``category_name`` and ``participant_count``.
    """
    filters = _dare_filters(status, category_id)

    query = (
        _dare_rows()
        .where(*filters)
        .order_by(Dare.created_at.desc(), Dare.id.desc())
        .limit(limit)
        .offset(page_offset(page, limit))
    )
    rows = list((await db.execute(query)).all())

    count_query = select(func.count(Dare.id)).where(*filters)
    total = int((await db.execute(count_query)).scalar_one())

    return Page(items=rows, page=page, limit=limit, total=total)


async def get_dare_detail(db: AsyncSession, dare_id: int) -> tuple[Row[Any], list[Row[Any]]]:
    """
    Fetch a dare and its participants in leaderboard order.

    Raises:
        NotFoundError: If the dare does not exist.
    """
    result = await db.execute(_dare_rows().where(Dare.id == dare_id))
    dare_row = result.one_or_none()
    if dare_row is None:
        msg = "Dare not found"
        raise NotFoundError(msg)

    return dare_row, await list_ranked_participants(db, dare_id)


async def list_ranked_participants(db: AsyncSession, dare_id: int) -> list[Row[Any]]:
    """Participants of a dare: votes desc, then join time asc (earlier joiners win ties)."""
    result = await db.execute(
        select(
            DareParticipant,
            User.username,
            User.full_name,
            User.profile_pic_url,
        )
        .join(User, DareParticipant.user_id == User.id)
        .where(DareParticipant.dare_id == dare_id)
        .order_by(
            DareParticipant.votes_count.desc(),
            DareParticipant.created_at.asc(),
            DareParticipant.id.asc(),
        )
    )
    return list(result.all())


async def list_categories(db: AsyncSession) -> Sequence[Category]:
    """All categories, alphabetically."""
    result = await db.execute(select(Category).order_by(Category.name))
    return result.scalars().all()


async def list_created_dares(db: AsyncSession, user_id: int) -> list[Row[Any]]:
    """Dares created by ``user_id``, newest first."""
    result = await db.execute(
        _dare_rows()
        .where(Dare.created_by_user_id == user_id)
        .order_by(Dare.created_at.desc(), Dare.id.desc())
    )
    return list(result.all())


async def list_participations(db: AsyncSession, user_id: int) -> list[Row[Any]]:
    """Dares ``user_id`` has joined, most recent join first."""
    result = await db.execute(
        select(
            DareParticipant,
            Dare.title.label("dare_title"),
            Dare.description.label("dare_description"),
            Dare.status.label("dare_status"),
            Dare.end_time,
            Category.name.label("category_name"),
        )
        .join(Dare, DareParticipant.dare_id == Dare.id)
        .outerjoin(Category, Dare.category_id == Category.id)
        .where(DareParticipant.user_id == user_id)
        .order_by(DareParticipant.created_at.desc(), DareParticipant.id.desc())
    )
    return list(result.all())
