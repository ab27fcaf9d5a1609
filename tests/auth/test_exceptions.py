"""Tests for auth/exceptions.py."""

import pytest

from auth.exceptions import (
    AuthError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidSessionError,
    SessionExpiredError,
    UserExistsError,
    UsernameTakenError,
    UserNotFoundError,
)


class TestErrorCodes:
    """Every auth error carries the code AuthService reports."""

    @pytest.mark.parametrize(
        "error_class, code",
        [
            (InvalidCredentialsError, "INVALID_CREDENTIALS"),
            (UserExistsError, "USER_EXISTS"),
            (UsernameTakenError, "USERNAME_EXISTS"),
            (EmailTakenError, "EMAIL_EXISTS"),
            (UserNotFoundError, "USER_NOT_FOUND"),
            (InvalidSessionError, "INVALID_SESSION"),
            (SessionExpiredError, "SESSION_EXPIRED"),
        ],
    )
    def test_codes(self, error_class, code):
        error = error_class("boom")
        assert isinstance(error, AuthError)
        assert error.error_code == code
        assert str(error) == "boom"

    def test_taken_errors_are_user_exists(self):
        assert issubclass(UsernameTakenError, UserExistsError)
        assert issubclass(EmailTakenError, UserExistsError)
