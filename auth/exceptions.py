"""Typed exceptions for auth failures.

Each exception carries the machine-readable error_code that AuthService puts
into its failure results.
"""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""

    error_code = "AUTH_ERROR"


class InvalidCredentialsError(AuthError):
    """
    Unknown user, inactive user, or wrong password.

    Deliberately one error for all three so callers cannot tell which
    check failed.
    """

    error_code = "INVALID_CREDENTIALS"


class UserExistsError(AuthError):
    """Username or email already belongs to a registered user."""

    error_code = "USER_EXISTS"


class UsernameTakenError(UserExistsError):
    """Another user already has this username (raised on update)."""

    error_code = "USERNAME_EXISTS"


class EmailTakenError(UserExistsError):
    """Another user already has this email (raised on update)."""

    error_code = "EMAIL_EXISTS"


class UserNotFoundError(AuthError):
    """No user with the given id, or the session's user is gone/inactive."""

    error_code = "USER_NOT_FOUND"


class InvalidSessionError(AuthError):
    """Session token unknown or revoked (logout)."""

    error_code = "INVALID_SESSION"


class SessionExpiredError(AuthError):
    """Session is past its expiry and the user must log in again."""

    error_code = "SESSION_EXPIRED"
