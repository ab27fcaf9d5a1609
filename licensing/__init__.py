"""License key generation, validation and activation."""

from licensing.exceptions import (
    LicenseError,
    InvalidLicenseFormatError,
    LicenseFileMissingError,
    LicenseNotFoundError,
    LicenseExpiredError,
    LicenseInactiveError,
    NoSavedLicenseError,
    LicenseRecordNotFoundError,
    KeyGenerationError,
)
from licensing.types import (
    License,
    LicenseView,
    CurrentLicense,
    ActivatedLicense,
    CreateLicenseRequest,
    UpdateLicenseRequest,
    LicenseCheck,
    LicenseResult,
    LicenseStats,
    AccessDecision,
)
from licensing.config import LicenseConfig
from licensing.codec import LicenseKeyCodec
from licensing.database import LicenseRepository, ActivationRepository
from licensing.service import LicenseService
from licensing.api import create_license_router
