"""Pydantic models for the auth domain.

Stored records and results dump to camelCase (see utils.models.CamelModel)
so the JSON files stay compatible with the desktop UI.
"""

from datetime import datetime
from typing import Literal

from pydantic import Field

from utils.models import CamelModel

Role = Literal["admin", "user"]


class User(CamelModel):
    """A registered user, without credentials. Safe to hand to callers."""

    id: str
    username: str
    email: str
    full_name: str = ""
    role: Role = "user"
    is_active: bool = True
    created_at: datetime
    last_login: datetime | None = None
    updated_at: datetime | None = None


class UserRecord(User):
    """A user as stored in users.json, including the password hash and salt."""

    password_hash: str
    password_salt: str

    def to_user(self) -> User:
        """Sanitized copy with the credential fields stripped."""
        return User.model_validate(
            self.model_dump(exclude={"password_hash", "password_salt"})
        )


class Session(CamelModel):
    """A login session. Revoked by flipping is_active, never deleted on logout."""

    token: str = Field(..., description="Session token (opaque string)")
    user_id: str
    created_at: datetime
    expires_at: datetime
    is_active: bool  # Required - fail closed, no default


class RegisterRequest(CamelModel):
    """Payload for self-registration and admin user creation."""

    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    full_name: str = ""
    password: str = Field(..., min_length=6)
    role: Role = "user"


class LoginRequest(CamelModel):
    """Username or email plus password."""

    username: str
    password: str


class UpdateUserRequest(CamelModel):
    """Admin edit of a user. new_password, when set, replaces the password."""

    user_id: str
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    full_name: str = ""
    role: Role = "user"
    is_active: bool = True
    new_password: str | None = Field(default=None, min_length=6)


class AuthResult(CamelModel):
    """Outcome of a user-facing auth operation. Never raised, always returned."""

    success: bool
    user: User | None = None
    session_token: str | None = None
    message: str | None = None
    error: str | None = None
    error_code: str | None = None


class SessionCheck(CamelModel):
    """Outcome of validating a session token."""

    is_valid: bool
    user: User | None = None
    session: Session | None = None
    error: str | None = None
    error_code: str | None = None


class UserStats(CamelModel):
    """User counters for the admin dashboard."""

    total: int
    active: int
    admins: int


class UserListResult(CamelModel):
    """Outcome of listing users for the admin screen."""

    success: bool
    users: list[User] = Field(default_factory=list)
    error: str | None = None
    error_code: str | None = None
