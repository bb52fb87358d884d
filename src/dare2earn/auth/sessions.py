"""
Session manager.

A session is either valid (row present and ``expires_at > now``) or absent.
Expiry is enforced lazily at validation time; ``sweep_expired`` only reclaims
storage. The raw bearer token is returned once by ``issue`` and afterwards
only its SHA-256 fingerprint is kept.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import jwt
import structlog
from sqlalchemy import delete, select

from dare2earn.auth.jwt import create_session_token, session_expiry, verify_session_token
from dare2earn.db.models import User, UserSession
from dare2earn.errors import InvalidSessionError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(frozen=True)
class SessionInfo:
    """Identity resolved from a live session."""

    user_id: int
    email: str
    username: str
    full_name: str | None
    role: str
    expires_at: datetime


def hash_token(raw_token: str) -> str:
    """Lookup fingerprint of a bearer token (hex SHA-256)."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


async def issue(db: AsyncSession, user: User) -> str:
    """Create a session for ``user`` and return the raw bearer token."""
    now = datetime.now(timezone.utc)
    expires_at = session_expiry(now)
    raw_token = create_session_token(user.id, user.email, issued_at=now, expires_at=expires_at)
    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(raw_token),
            expires_at=expires_at,
            created_at=now,
        )
    )
    await db.flush()
    logger.info("session_issued", user_id=user.id, expires_at=expires_at.isoformat())
    return raw_token


async def validate(db: AsyncSession, raw_token: str) -> SessionInfo:
    """
    Resolve a bearer token to its session.

    Both the signed claim and the server-side row must be valid.

    Raises:
        InvalidSessionError: If the claim fails verification, no unexpired row
            matches, or the owning account is inactive.
    """
    try:
        claims = verify_session_token(raw_token)
    except jwt.InvalidTokenError as e:
        raise InvalidSessionError(f"Claim rejected: {e}") from e

    now = datetime.now(timezone.utc)
    result = await db.execute(
        select(
            UserSession.user_id,
            UserSession.expires_at,
            User.email,
            User.username,
            User.full_name,
            User.role,
            User.is_active,
        )
        .join(User, User.id == UserSession.user_id)
        .where(UserSession.token_hash == hash_token(raw_token))
        .where(UserSession.expires_at > now)
    )
    row = result.one_or_none()
    if row is None:
        msg = "Invalid or expired session"
        raise InvalidSessionError(msg)
    if str(row.user_id) != claims["sub"]:
        msg = "Session subject mismatch"
        raise InvalidSessionError(msg)
    if not row.is_active:
        msg = "Account is deactivated"
        raise InvalidSessionError(msg)

    return SessionInfo(
        user_id=row.user_id,
        email=row.email,
        username=row.username,
        full_name=row.full_name,
        role=row.role,
        expires_at=row.expires_at,
    )


async def revoke(db: AsyncSession, raw_token: str) -> bool:
    """Delete the session for ``raw_token``. Returns True if a row was removed."""
    result = await db.execute(
        delete(UserSession)
        .where(UserSession.token_hash == hash_token(raw_token))
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    return bool(result.rowcount)


async def revoke_all(db: AsyncSession, user_id: int) -> int:
    """Delete every session of ``user_id``. Returns the count removed."""
    result = await db.execute(
        delete(UserSession)
        .where(UserSession.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    count = int(result.rowcount or 0)
    logger.info("sessions_revoked", user_id=user_id, count=count)
    return count


async def sweep_expired(db: AsyncSession) -> int:
    """Bulk-delete expired sessions. Returns the count removed."""
    now = datetime.now(timezone.utc)
    result = await db.execute(
        delete(UserSession)
        .where(UserSession.expires_at < now)
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    return int(result.rowcount or 0)
