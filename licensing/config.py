"""License configuration."""

from pydantic import BaseModel, Field

# Static application secret the desktop builds have always shipped with.
# Keys are looked up, never decrypted, so changing it does not invalidate
# existing keys.
DEFAULT_SECRET_KEY = "MarketManager2024SecretKey"


class LicenseConfig(BaseModel):
    """
    License key and expiry configuration.

    Durations are whole days; the display settings only affect the expiry
    date rendered into LICENSE_EXPIRED messages.
    """

    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Symmetric secret used by the key codec",
        min_length=8,
    )
    key_prefix: str = Field(default="MM-", min_length=1)
    key_length: int = Field(
        default=25,
        description="Maximum characters after the prefix",
        ge=8,
        le=25,
    )
    default_duration_days: int = Field(
        default=30,
        description="License lifetime when none is given",
        ge=1,
    )
    expiry_warning_days: int = Field(
        default=7,
        description="Warn when a saved license has this many days left or fewer",
        ge=0,
    )
    key_generation_attempts: int = Field(
        default=5,
        description="Retries when a generated key collides with a stored one",
        ge=1,
        le=100,
    )
    display_timezone: str = Field(default="UTC")
    display_date_format: str = Field(default="%Y-%m-%d")
