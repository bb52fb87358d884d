"""
Signed session claims.

Every bearer token is a JWT carrying the user id, email and a random ``jti``.
The claim alone is never sufficient: ``dare2earn.auth.sessions`` also requires
a live server-side row keyed by the token's hash, which is what makes logout
and mass revocation possible before the embedded ``exp``.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import jwt

from dare2earn.config import get_settings

TOKEN_TYPE = "session"

_signing_key: str | None = None
_verifying_key: str | None = None


def _load_keys() -> tuple[str, str]:
    """Return (signing key, verifying key), cached after first call.

    HMAC algorithms use the shared secret; RSA/EC algorithms read PEM files.
    """
    global _signing_key, _verifying_key  # noqa: PLW0603
    if _signing_key is None or _verifying_key is None:
        settings = get_settings()
        if settings.jwt_algorithm.startswith("HS"):
            _signing_key = _verifying_key = settings.jwt_secret_key
        else:
            _signing_key = Path(settings.jwt_private_key_path).read_text()
            _verifying_key = Path(settings.jwt_public_key_path).read_text()
    return _signing_key, _verifying_key


def reset_keys() -> None:
    """Reset cached keys (useful for testing)."""
    global _signing_key, _verifying_key  # noqa: PLW0603
    _signing_key = None
    _verifying_key = None


def create_session_token(user_id: int, email: str, issued_at: datetime, expires_at: datetime) -> str:
    """
    Create a signed session claim.

    Args:
        user_id: The user's database ID.
        email: The user's email address.
        issued_at: Issue time (timezone-aware).
        expires_at: Hard expiry embedded in the claim.

    Returns:
        Encoded JWT string. The ``jti`` carries 256 bits of randomness.
    """
    signing_key, _ = _load_keys()
    settings = get_settings()
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "jti": secrets.token_urlsafe(32),
        "iat": issued_at,
        "exp": expires_at,
        "iss": settings.jwt_issuer,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(payload, signing_key, algorithm=settings.jwt_algorithm)


def session_expiry(issued_at: datetime) -> datetime:
    """Expiry for a session issued at ``issued_at``."""
    return issued_at + timedelta(days=get_settings().session_ttl_days)


def verify_session_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a session claim.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, expired, from another
            issuer or not a session token.
    """
    _, verifying_key = _load_keys()
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            verifying_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp", "iat", "jti"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != TOKEN_TYPE:
        msg = f"Expected token type '{TOKEN_TYPE}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload
