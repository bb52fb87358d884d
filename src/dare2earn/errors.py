"""Typed domain errors.

Services raise these; ``dare2earn.middleware.error_handler`` maps each one to
its HTTP status and a message that is safe to show the caller. The exception's
own ``str()`` may carry internal detail and is only ever logged.
"""

from __future__ import annotations


class Dare2EarnError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message
        elif message is not None and self.status_code < 500:
            self.public_message = message


class ValidationError(Dare2EarnError, ValueError):
    """Malformed or missing input."""

    status_code = 400
    public_message = "Invalid request"


class ConflictError(Dare2EarnError):
    """A uniqueness rule would be violated."""

    status_code = 400
    public_message = "Resource already exists"


class InvalidStateError(Dare2EarnError):
    """The operation is not permitted in the resource's current lifecycle state."""

    status_code = 400
    public_message = "Operation not allowed in the current state"


class SelfVoteError(Dare2EarnError):
    """A user tried to vote for their own submission."""

    status_code = 400
    public_message = "You cannot vote for yourself"


class InvalidCredentialsError(Dare2EarnError):
    """Password mismatch or deactivated account."""

    status_code = 400
    public_message = "Invalid email or password"


class UnauthenticatedError(Dare2EarnError):
    """No credential was presented."""

    status_code = 401
    public_message = "Access token required"


class ForbiddenError(Dare2EarnError):
    """A credential was presented but is invalid or insufficient."""

    status_code = 403
    public_message = "Forbidden"


class InvalidSessionError(ForbiddenError):
    """The bearer token does not resolve to a live session."""

    public_message = "Invalid or expired session"


class NotFoundError(Dare2EarnError):
    """The requested resource does not exist."""

    status_code = 404
    public_message = "Not found"


class InternalError(Dare2EarnError):
    """Unclassified failure. Detail is never shown to the caller."""
