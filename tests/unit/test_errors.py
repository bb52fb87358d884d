"""Unit tests for the domain error taxonomy."""

import pytest

from dare2earn.errors import (
    ConflictError,
    Dare2EarnError,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    InvalidSessionError,
    InvalidStateError,
    NotFoundError,
    SelfVoteError,
    UnauthenticatedError,
    ValidationError,
)


class TestStatusCodes:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationError, 400),
            (ConflictError, 400),
            (InvalidStateError, 400),
            (SelfVoteError, 400),
            (InvalidCredentialsError, 400),
            (UnauthenticatedError, 401),
            (ForbiddenError, 403),
            (InvalidSessionError, 403),
            (NotFoundError, 404),
            (InternalError, 500),
        ],
    )
    def test_status(self, error, status):
        assert issubclass(error, Dare2EarnError)
        assert error.status_code == status

    def test_validation_error_is_a_value_error(self):
        assert issubclass(ValidationError, ValueError)


class TestPublicMessage:
    def test_client_error_message_is_public(self):
        err = NotFoundError("Dare not found")
        assert err.public_message == "Dare not found"
        assert str(err) == "Dare not found"

    def test_default_public_message(self):
        assert ConflictError().public_message == "Resource already exists"

    def test_explicit_public_message_wins(self):
        err = ForbiddenError("Claim rejected: bad signature", public_message="Invalid or expired session")
        assert err.public_message == "Invalid or expired session"
        assert "bad signature" in str(err)

    def test_internal_detail_never_public(self):
        err = InternalError("connection refused to db-primary:5432")
        assert err.public_message == "Internal server error"
        assert "db-primary" in str(err)
