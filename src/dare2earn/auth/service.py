"""
Credential store.

Handles user creation, credential checks, profile updates and password changes.
Functions flush but never commit; the calling router owns the transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from dare2earn.auth import sessions
from dare2earn.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from dare2earn.db.models import User
from dare2earn.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from dare2earn.auth.schemas import ProfileUpdateRequest

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (matched against the stored lower-case form)."""
    result = await db.execute(select(User).where(User.email == email.lower().strip()))
    return result.scalar_one_or_none()


async def get_active_user(db: AsyncSession, user_id: int) -> User:
    """Fetch an active user or raise NotFoundError."""
    result = await db.execute(select(User).where(User.id == user_id, User.is_active.is_(True)))
    user = result.scalar_one_or_none()
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)
    return user


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def _identity_taken(db: AsyncSession, email: str, username: str) -> bool:
    result = await db.execute(select(User.id).where(or_(User.email == email, User.username == username)))
    return result.first() is not None


async def register(
    db: AsyncSession,
    email: str,
    password: str,
    username: str,
    full_name: str | None = None,
    phone_number: str | None = None,
) -> User:
    """
    Register a new user with email + password.

    Raises:
        PasswordStrengthError: If the password violates the length policy.
        ConflictError: If the email or username is already taken.
    """
    validate_password_strength(password)

    email = email.lower().strip()
    username = username.strip()

    if await _identity_taken(db, email, username):
        msg = "User with this email or username already exists"
        raise ConflictError(msg)

    now = datetime.now(timezone.utc)
    user = User(
        email=email,
        password_hash=hash_password(password),
        username=username,
        full_name=full_name,
        phone_number=phone_number,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent sign-up for the same email/username.
        msg = "User with this email or username already exists"
        raise ConflictError(msg) from e

    logger.info("user_created", user_id=user.id, username=username)
    return user


# ---------------------------------------------------------------------------
# Sign-in
# ---------------------------------------------------------------------------


async def verify_credentials(db: AsyncSession, email: str, password: str) -> User:
    """
    Check an email + password pair.

    Raises:
        NotFoundError: If no account has this email.
        InvalidCredentialsError: If the account is deactivated or the password
            does not match.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        msg = "No account found with this email"
        raise NotFoundError(msg)

    if not user.is_active:
        msg = "Account is deactivated"
        raise InvalidCredentialsError(msg)

    if not verify_password(password, user.password_hash):
        msg = "Invalid password"
        raise InvalidCredentialsError(msg)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.flush()
        logger.info("password_rehashed", user_id=user.id)

    return user


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def update_profile(db: AsyncSession, user_id: int, changes: ProfileUpdateRequest) -> User:
    """
    Apply a profile update.

    Raises:
        ValidationError: If the update sets no fields.
        ConflictError: If the new username belongs to someone else.
        NotFoundError: If the user does not exist or is inactive.
    """
    fields = changes.model_dump(exclude_unset=True)
    if not fields:
        msg = "No valid fields to update"
        raise ValidationError(msg)

    user = await get_active_user(db, user_id)

    if "username" in fields:
        if fields["username"] is None:
            msg = "Username cannot be empty"
            raise ValidationError(msg)
        fields["username"] = fields["username"].strip()
        taken = await db.execute(
            select(User.id).where(User.username == fields["username"]).where(User.id != user_id)
        )
        if taken.first() is not None:
            msg = "Username already taken"
            raise ConflictError(msg)

    for name, value in fields.items():
        setattr(user, name, value)
    user.updated_at = datetime.now(timezone.utc)

    try:
        await db.flush()
    except IntegrityError as e:
        msg = "Username already taken"
        raise ConflictError(msg) from e

    logger.info("profile_updated", user_id=user_id, fields=sorted(fields))
    return user


# ---------------------------------------------------------------------------
# Password change
# ---------------------------------------------------------------------------


async def change_password(
    db: AsyncSession,
    user_id: int,
    current_password: str,
    new_password: str,
) -> int:
    """
    Replace the user's password and revoke all of their sessions.

    Runs in the caller's transaction, so a failure anywhere leaves both the
    password and the sessions untouched. Returns the number of sessions revoked.

    Raises:
        NotFoundError: If the user does not exist.
        InvalidCredentialsError: If ``current_password`` is wrong.
        PasswordStrengthError: If ``new_password`` violates the policy.
    """
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)

    if not verify_password(current_password, user.password_hash):
        msg = "Current password is incorrect"
        raise InvalidCredentialsError(msg)

    validate_password_strength(new_password)

    user.password_hash = hash_password(new_password)
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()

    revoked = await sessions.revoke_all(db, user_id)
    logger.info("password_changed", user_id=user_id, sessions_revoked=revoked)
    return revoked
