"""Per-user ledger and notification reads.

Both tables are written by external jobs; the only mutation here is a user
marking one of their own notifications as read.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import select, update

from dare2earn.db.models import Notification, Transaction

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def list_transactions(db: AsyncSession, user_id: int) -> Sequence[Transaction]:
    """All ledger entries of a user, newest first."""
    result = await db.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )
    return result.scalars().all()


async def list_notifications(db: AsyncSession, user_id: int, limit: int = 50) -> Sequence[Notification]:
    """Most recent notifications of a user."""
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


async def mark_notification_read(db: AsyncSession, user_id: int, notification_id: int) -> bool:
    """Mark one notification as read. Returns False if it is not the user's."""
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == user_id)
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    return bool(result.rowcount)
