"""Authentication router: all /auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.auth import sessions
from dare2earn.auth.dependencies import Identity, get_bearer_token, get_current_identity
from dare2earn.auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    SessionUserResponse,
    SigninRequest,
    SignupRequest,
    StatusResponse,
    UserEnvelope,
    UserResponse,
)
from dare2earn.auth.service import (
    change_password,
    get_active_user,
    register,
    update_profile,
    verify_credentials,
)
from dare2earn.database import get_session
from dare2earn.db.models import User
from dare2earn.errors import InvalidCredentialsError, NotFoundError

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["Authentication"])

SIGNIN_FAILED = "Invalid email or password"


def _session_user(user: User) -> SessionUserResponse:
    return SessionUserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        full_name=user.full_name,
        phone_number=user.phone_number,
        role=user.role,
    )


def _user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        full_name=user.full_name,
        phone_number=user.phone_number,
        profile_pic_url=user.profile_pic_url,
        bio=user.bio,
        wallet_balance=user.wallet_balance,
        email_verified=user.email_verified,
        role=user.role,
        created_at=user.created_at,
    )


@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Create an account and its first session."""
    user = await register(
        db,
        email=body.email,
        password=body.password,
        username=body.username,
        full_name=body.full_name,
        phone_number=body.phone_number,
    )
    token = await sessions.issue(db, user)
    await db.commit()
    return AuthResponse(message="Account created successfully", user=_session_user(user), token=token)


@router.post("/signin", response_model=AuthResponse)
async def signin(
    body: SigninRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Sign in with email + password."""
    try:
        user = await verify_credentials(db, body.email, body.password)
    except (NotFoundError, InvalidCredentialsError) as e:
        # Same answer for unknown email and wrong password.
        logger.info("signin_failed", reason=type(e).__name__)
        raise HTTPException(status_code=400, detail=SIGNIN_FAILED) from e

    token = await sessions.issue(db, user)
    await db.commit()
    return AuthResponse(message="Signed in successfully", user=_session_user(user), token=token)


@router.post("/logout", response_model=StatusResponse)
async def logout(
    _identity: Identity = Depends(get_current_identity),
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_session),
) -> StatusResponse:
    """Revoke the session behind the presented token."""
    await sessions.revoke(db, token)
    await db.commit()
    return StatusResponse(message="Logged out successfully")


@router.get("/user", response_model=UserEnvelope)
async def get_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> UserEnvelope:
    """Return the signed-in user's profile."""
    user = await get_active_user(db, identity.id)
    return UserEnvelope(user=_user_response(user))


@router.put("/user", response_model=ProfileUpdateResponse)
async def put_user(
    body: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ProfileUpdateResponse:
    """Update profile fields."""
    user = await update_profile(db, identity.id, body)
    await db.commit()
    return ProfileUpdateResponse(user=_user_response(user))


@router.post("/change-password", response_model=StatusResponse)
async def post_change_password(
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> StatusResponse:
    """Change password. Every session of the user, including this one, is revoked."""
    await change_password(db, identity.id, body.current_password, body.new_password)
    await db.commit()
    return StatusResponse(message="Password changed successfully")
