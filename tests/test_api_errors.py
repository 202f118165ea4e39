from __future__ import annotations

from authkit.api.errors import http_error
from authkit.domain.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCodeError,
    OAuthProviderError,
    ProtectedRoleError,
    RegistrationNotFoundError,
    SessionExpiredError,
    ValidationError,
)


def test_categories_map_to_status_codes():
    assert http_error(RegistrationNotFoundError("gone")).status_code == 404
    assert http_error(EmailAlreadyRegisteredError("taken")).status_code == 409
    assert http_error(ValidationError("bad")).status_code == 400
    assert http_error(ProtectedRoleError("protected")).status_code == 403
    assert http_error(OAuthProviderError("down")).status_code == 502


def test_unauthorized_errors_carry_bearer_challenge():
    exc = http_error(SessionExpiredError("Session expired."))

    assert exc.status_code == 401
    assert exc.headers == {"WWW-Authenticate": "Bearer"}
    assert exc.detail == {"message": "Session expired.", "code": "session_expired"}


def test_invalid_code_reports_remaining_attempts():
    exc = http_error(InvalidCodeError("Invalid activation code.", remaining_attempts=2))

    assert exc.detail == {
        "message": "Invalid activation code.",
        "code": "invalid_code",
        "remaining_attempts": 2,
    }
    assert exc.headers is None
