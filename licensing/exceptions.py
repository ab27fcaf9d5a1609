"""Typed exceptions for license failures.

Each exception carries the error_code LicenseService puts into its results.
"""

from datetime import datetime


class LicenseError(Exception):
    """Base class for license errors."""

    error_code = "LICENSE_ERROR"


class InvalidLicenseFormatError(LicenseError):
    """Key missing or not of the form MM-<1..25 alphanumerics>."""

    error_code = "INVALID_FORMAT"


class LicenseFileMissingError(LicenseError):
    """The licenses file does not exist at all."""

    error_code = "NO_LICENSE_FILE"


class LicenseNotFoundError(LicenseError):
    """No stored license has this exact key."""

    error_code = "LICENSE_NOT_FOUND"


class LicenseExpiredError(LicenseError):
    """License is past its expiry date."""

    error_code = "LICENSE_EXPIRED"

    def __init__(self, expires_at: datetime, message: str = "License has expired"):
        self.expires_at = expires_at
        super().__init__(message)


class LicenseInactiveError(LicenseError):
    """License switched off by an administrator."""

    error_code = "LICENSE_INACTIVE"


class NoSavedLicenseError(LicenseError):
    """This installation has not activated any license."""

    error_code = "NO_SAVED_LICENSE"


class LicenseRecordNotFoundError(LicenseError):
    """No license with the given id (admin update/delete)."""

    error_code = "NOT_FOUND"


class KeyGenerationError(LicenseError):
    """Could not produce a key that is not already stored."""

    error_code = "KEY_GENERATION_ERROR"
