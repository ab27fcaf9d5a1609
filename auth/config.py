"""Authentication configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class PasswordPolicy(BaseModel):
    """
    Parameters of the PBKDF2 password hash.

    One policy is current and used for every new hash. Stored hashes made
    under an older policy are still accepted through AuthConfig.legacy_password_policies
    and re-hashed with the current policy on the next successful login.
    """

    digest: Literal["sha256", "sha512"] = "sha512"
    iterations: int = Field(
        default=10000,
        description="PBKDF2 iteration count",
        ge=1000,
    )
    hash_length: int = Field(
        default=64,
        description="Derived key length in bytes",
        ge=16,
        le=1024,
    )
    salt_bytes: int = Field(
        default=16,
        description="Random salt size in bytes (stored hex-encoded)",
        ge=8,
        le=64,
    )

    model_config = {"frozen": True}


# Hashes written by earlier builds of the desktop app. The utility module
# used 1000 iterations / 64 bytes, the window process 10000 / 512 bytes.
LEGACY_PASSWORD_POLICIES = (
    PasswordPolicy(iterations=1000, hash_length=64),
    PasswordPolicy(iterations=10000, hash_length=512),
)


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Session lifetime is fixed at creation (no sliding extension).
    """

    session_expiry_hours: int = Field(
        default=24,
        description="Session lifetime in hours",
        ge=1,
        le=2160,
    )
    session_token_bytes: int = Field(
        default=32,
        description="Random bytes in a session token (hex-encoded)",
        ge=16,
        le=64,
    )

    password_policy: PasswordPolicy = Field(default_factory=PasswordPolicy)
    legacy_password_policies: tuple[PasswordPolicy, ...] = Field(
        default=LEGACY_PASSWORD_POLICIES,
        description="Older policies accepted at login and migrated on success",
    )

    # Bootstrap account created when the users file does not exist yet
    default_admin_id: str = "admin-001"
    default_admin_username: str = "admin"
    default_admin_email: str = "admin@marketmanager.com"
    default_admin_full_name: str = "System Administrator"
    default_admin_password: str = Field(default="admin123", min_length=6)
