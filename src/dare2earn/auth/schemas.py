"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

# ---------------------------------------------------------------------------
# Sign-up / sign-in
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Sign-up with email + password + username."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    username: str = Field(..., min_length=3, max_length=64)
    full_name: str | None = Field(None, max_length=128)
    phone_number: str | None = Field(None, max_length=32)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("username", "full_name", "phone_number")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None


class SigninRequest(BaseModel):
    """Sign-in with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class ChangePasswordRequest(BaseModel):
    """Change password (requires current password)."""

    current_password: str = Field(..., min_length=1, max_length=128, alias="currentPassword")
    new_password: str = Field(..., min_length=1, max_length=128, alias="newPassword")


class ProfileUpdateRequest(BaseModel):
    """Fields a user may change on their own profile. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, max_length=128)
    username: str | None = Field(None, min_length=3, max_length=64)
    bio: str | None = Field(None, max_length=500)
    phone_number: str | None = Field(None, max_length=32)
    profile_pic_url: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class SessionUserResponse(BaseModel):
    """User projection returned alongside a fresh token."""

    id: int
    email: str
    username: str
    full_name: str | None = None
    phone_number: str | None = None
    role: str = "user"


class UserResponse(BaseModel):
    """Public projection of the signed-in user. Never includes the password hash."""

    id: int
    email: str
    username: str
    full_name: str | None = None
    phone_number: str | None = None
    profile_pic_url: str | None = None
    bio: str | None = None
    wallet_balance: Decimal
    email_verified: bool
    role: str
    created_at: datetime


class AuthResponse(BaseModel):
    """Sign-up / sign-in response."""

    success: bool = True
    message: str
    user: SessionUserResponse
    token: str


class UserEnvelope(BaseModel):
    """``{"user": ...}`` wrapper."""

    user: UserResponse


class ProfileUpdateResponse(BaseModel):
    """Profile update response."""

    success: bool = True
    message: str = "Profile updated successfully"
    user: UserResponse


class StatusResponse(BaseModel):
    """Generic success acknowledgement."""

    success: bool = True
    message: str
