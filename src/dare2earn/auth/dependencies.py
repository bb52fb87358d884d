"""FastAPI authentication dependencies (the access gate)."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.auth import sessions
from dare2earn.database import get_session
from dare2earn.errors import ForbiddenError, InvalidSessionError, UnauthenticatedError

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Minimal projection of the caller attached to protected requests."""

    id: int
    email: str
    username: str
    full_name: str | None
    role: str = "user"


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str:
    """Return the raw bearer token or raise UnauthenticatedError (401)."""
    if credentials is None or not credentials.credentials:
        msg = "Access token required"
        raise UnauthenticatedError(msg)
    return credentials.credentials


async def get_current_identity(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_session),
) -> Identity:
    """
    Resolve the bearer token to an identity.

    Raises 401 when no token is sent and 403 when the token does not map to a
    live session.
    """
    try:
        info = await sessions.validate(db, token)
    except InvalidSessionError as e:
        # The reason stays in the logs; callers only learn the session is unusable.
        raise ForbiddenError(str(e), public_message=InvalidSessionError.public_message) from e

    structlog.contextvars.bind_contextvars(user_id=info.user_id)
    return Identity(
        id=info.user_id,
        email=info.email,
        username=info.username,
        full_name=info.full_name,
        role=info.role,
    )


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Same as get_current_identity but additionally requires the admin role."""
    if identity.role != "admin":
        msg = "Admin access required"
        raise ForbiddenError(msg)
    return identity
