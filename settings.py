"""
Process settings read from the environment.

Entry points (main.create_app, cli.main) call load_dotenv() first, so a
.env file next to the working directory works the same as exported vars.
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from auth.config import AuthConfig
from licensing.config import DEFAULT_SECRET_KEY, LicenseConfig
from utils.timezone import now_utc, to_local

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "MARKET_MANAGER_DATA_DIR"
LICENSE_SECRET_ENV = "MARKET_MANAGER_LICENSE_SECRET"
DISPLAY_TZ_ENV = "MARKET_MANAGER_DISPLAY_TZ"


class AppSettings(BaseModel):
    """Where data lives and the knobs that differ between installations."""

    data_dir: Path = Field(default=Path("data"), description="Directory holding the JSON files")
    auth: AuthConfig = Field(default_factory=AuthConfig)
    license: LicenseConfig = Field(default_factory=LicenseConfig)

    @field_validator("data_dir")
    @classmethod
    def _data_dir_not_a_file(cls, value: Path) -> Path:
        if value.exists() and not value.is_dir():
            raise ValueError(f"{value} exists and is not a directory")
        return value

    @classmethod
    def from_env(cls) -> "AppSettings":
        """
        Build settings from MARKET_MANAGER_* variables.

        Fails fast (ValueError / ValidationError) on an unknown display
        timezone or a secret that LicenseConfig rejects.
        """
        license_overrides = {}

        secret = os.getenv(LICENSE_SECRET_ENV)
        if secret:
            license_overrides["secret_key"] = secret
        else:
            logger.warning(
                f"{LICENSE_SECRET_ENV} not set, using the built-in application secret"
            )
            license_overrides["secret_key"] = DEFAULT_SECRET_KEY

        tz_name = os.getenv(DISPLAY_TZ_ENV)
        if tz_name:
            to_local(now_utc(), tz_name)  # raises ValueError if unknown
            license_overrides["display_timezone"] = tz_name

        return cls(
            data_dir=Path(os.getenv(DATA_DIR_ENV, "data")),
            license=LicenseConfig(**license_overrides),
        )
