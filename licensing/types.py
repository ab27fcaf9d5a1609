"""Pydantic models for the licensing domain.

License is the authoritative record in licenses.json. LicenseView is the
sanitized shape handed to the UI after a successful check. ActivatedLicense
is the per-installation marker in user-license.json.
"""

from datetime import datetime

from pydantic import Field

from utils.models import CamelModel


class License(CamelModel):
    """A license as stored in licenses.json."""

    license_key: str
    id: str
    customer_name: str | None = ""
    customer_email: str | None = ""
    created_at: datetime
    expires_at: datetime
    duration_days: int
    is_active: bool = True
    activated_at: datetime | None = None
    activated_by: str | None = None
    updated_at: datetime | None = None


class LicenseView(CamelModel):
    """What a caller learns about a valid license."""

    id: str
    customer_name: str | None = ""
    customer_email: str | None = ""
    created_at: datetime
    expires_at: datetime
    days_remaining: int


class CurrentLicense(LicenseView):
    """The saved license of this installation, when it is still valid."""

    activated_at: datetime
    license_key: str


class ActivatedLicense(CamelModel):
    """Local marker: this installation accepted license_key at activated_at."""

    license_key: str
    activated_at: datetime
    license: LicenseView | None = None


class CreateLicenseRequest(CamelModel):
    """Payload for generating one license."""

    customer_name: str = ""
    customer_email: str = ""
    duration_days: int = Field(default=30, ge=1)


class UpdateLicenseRequest(CamelModel):
    """Admin edit of a license.

    Fields left as None keep their stored value. additional_days moves the
    expiry by that many days and may be negative.
    """

    license_id: str
    customer_name: str | None = None
    customer_email: str | None = None
    is_active: bool | None = None
    additional_days: int = 0


class LicenseCheck(CamelModel):
    """Outcome of validating, activating or re-checking a key."""

    is_valid: bool
    license: LicenseView | None = None
    message: str | None = None
    error: str | None = None
    error_code: str | None = None
    expiry_date: str | None = None


class LicenseResult(CamelModel):
    """Outcome of an admin license operation."""

    success: bool
    license: License | None = None
    licenses: list[License] = Field(default_factory=list)
    message: str | None = None
    error: str | None = None
    error_code: str | None = None


class LicenseStats(CamelModel):
    """License counters for the admin dashboard."""

    total: int
    active: int
    inactive: int
    expired: int
    expiring_soon: int


class AccessDecision(CamelModel):
    """Whether the app may be used, and why."""

    allowed: bool
    admin_bypass: bool = False
    check: LicenseCheck | None = None
