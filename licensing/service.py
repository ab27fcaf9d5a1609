"""License service - validation, activation and license administration.

Every public method returns a result model instead of raising. A key is
checked in a fixed order:

    INVALID_FORMAT -> NO_LICENSE_FILE -> LICENSE_NOT_FOUND
        -> LICENSE_EXPIRED -> LICENSE_INACTIVE -> valid

Validity is never cached. The local activation marker only remembers which
key was accepted; every check re-reads the license record.
"""

import logging
from datetime import timedelta
from uuid import uuid4

from clients.json_store_client import StorageError
from core.audit import AuditAction, AuditLogger, compute_changes
from licensing.codec import LicenseKeyCodec
from licensing.config import LicenseConfig
from licensing.database import ActivationRepository, LicenseRepository
from licensing.exceptions import (
    InvalidLicenseFormatError,
    KeyGenerationError,
    LicenseError,
    LicenseExpiredError,
    LicenseFileMissingError,
    LicenseInactiveError,
    LicenseNotFoundError,
    LicenseRecordNotFoundError,
    NoSavedLicenseError,
)
from licensing.types import (
    AccessDecision,
    ActivatedLicense,
    CreateLicenseRequest,
    CurrentLicense,
    License,
    LicenseCheck,
    LicenseResult,
    LicenseStats,
    LicenseView,
    UpdateLicenseRequest,
)
from utils.timezone import ceil_days, days_until, format_display_date, now_utc

logger = logging.getLogger(__name__)


class LicenseService:
    """Orchestrates license keys for one installation and for the admin screens.

    Handles:
    - Key validation and activation of this installation
    - Re-checking and clearing the saved activation
    - Generating, editing, extending and deleting licenses
    """

    def __init__(
        self,
        config: LicenseConfig,
        licenses: LicenseRepository,
        activation: ActivationRepository,
        codec: LicenseKeyCodec,
        audit: AuditLogger,
    ):
        self._config = config
        self._licenses = licenses
        self._activation = activation
        self._codec = codec
        self._audit = audit

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _check(self, license_key: str | None) -> License:
        """Resolve key to a usable license record.

        Raises:
            LicenseError: The first failing check, in priority order.
            StorageError: The licenses file could not be read.
        """
        if not self._codec.is_well_formed(license_key):
            raise InvalidLicenseFormatError("Invalid license key format")

        if not self._licenses.exists():
            raise LicenseFileMissingError("License file not found")

        record = self._licenses.find_by_key(license_key)
        if record is None:
            raise LicenseNotFoundError("License key not found")

        if now_utc() > record.expires_at:
            raise LicenseExpiredError(record.expires_at)

        if not record.is_active:
            raise LicenseInactiveError("License is not active")

        return record

    def _view(self, record: License) -> LicenseView:
        return LicenseView(
            id=record.id,
            customer_name=record.customer_name,
            customer_email=record.customer_email,
            created_at=record.created_at,
            expires_at=record.expires_at,
            days_remaining=days_until(record.expires_at, now_utc()),
        )

    def _check_failure(self, error: LicenseError) -> LicenseCheck:
        expiry_date = None
        if isinstance(error, LicenseExpiredError):
            expiry_date = format_display_date(
                error.expires_at,
                self._config.display_timezone,
                self._config.display_date_format,
            )
        return LicenseCheck(
            is_valid=False,
            error=str(error),
            error_code=error.error_code,
            expiry_date=expiry_date,
        )

    def validate_license(self, license_key: str | None) -> LicenseCheck:
        """Read-only check of a key against the license store."""
        try:
            record = self._check(license_key)
        except LicenseError as e:
            return self._check_failure(e)
        except StorageError as e:
            logger.error(f"License validation failed: {e}")
            return LicenseCheck(
                is_valid=False,
                error=f"License validation failed: {e}",
                error_code="VALIDATION_ERROR",
            )

        return LicenseCheck(is_valid=True, license=self._view(record))

    # -------------------------------------------------------------------------
    # Activation of this installation
    # -------------------------------------------------------------------------

    def activate_license(self, license_key: str, activated_by: str | None = None) -> LicenseCheck:
        """Validate key and remember it as this installation's license.

        Flow:
        1. Validate (same failures as validate_license)
        2. Overwrite the local activation marker
        3. Stamp activated_at / activated_by on the record the first time

        A valid key whose marker cannot be written returns SAVE_ERROR; the
        installation is then not activated and activation can be retried.
        """
        check = self.validate_license(license_key)
        if not check.is_valid:
            return check

        now = now_utc()
        marker = ActivatedLicense(license_key=license_key, activated_at=now, license=check.license)
        try:
            self._activation.save(marker)
        except StorageError as e:
            logger.error(f"License {check.license.id} is valid but could not be saved: {e}")
            return LicenseCheck(
                is_valid=False,
                license=check.license,
                error=f"License is valid but could not be saved: {e}",
                error_code="SAVE_ERROR",
            )

        self._stamp_first_activation(check.license.id, now, activated_by)

        return LicenseCheck(
            is_valid=True,
            license=check.license,
            message="License activated successfully",
        )

    def _stamp_first_activation(self, license_id: str, when, activated_by: str | None) -> None:
        """Record first activation metadata on the license. Best effort."""

        def apply(record: License) -> None:
            if record.activated_at is None:
                record.activated_at = when
                record.activated_by = activated_by

        try:
            updated = self._licenses.update(license_id, apply)
        except StorageError as e:
            logger.warning(f"Activation metadata for {license_id} not recorded: {e}")
            return
        if updated is None or updated[0].activated_at is not None:
            return

        self._audit.log_change(
            entity_type="license",
            entity_id=license_id,
            action=AuditAction.UPDATE,
            changes={"activatedAt": {"old": None, "new": when.isoformat()}},
            user_id=activated_by,
        )

    def check_saved_license(self) -> LicenseCheck:
        """Re-validate the key this installation activated.

        NO_SAVED_LICENSE if nothing was activated or the marker is unreadable;
        otherwise exactly what validate_license returns for the saved key
        right now.
        """
        try:
            marker = self._activation.load()
        except StorageError as e:
            logger.warning(f"Ignoring unreadable saved license: {e}")
            marker = None

        if marker is None:
            return self._check_failure(NoSavedLicenseError("No saved license"))

        return self.validate_license(marker.license_key)

    def get_current_license(self) -> CurrentLicense | None:
        """The saved license with activation details, or None if not currently valid."""
        try:
            marker = self._activation.load()
        except StorageError as e:
            logger.warning(f"Ignoring unreadable saved license: {e}")
            return None
        if marker is None:
            return None

        check = self.validate_license(marker.license_key)
        if not check.is_valid:
            return None

        return CurrentLicense(
            **check.license.model_dump(),
            activated_at=marker.activated_at,
            license_key=marker.license_key,
        )

    def clear_saved_license(self) -> LicenseResult:
        """Forget this installation's activation. Safe when nothing is saved."""
        try:
            self._activation.clear()
        except StorageError as e:
            logger.error(f"Clearing saved license failed: {e}")
            return LicenseResult(success=False, error=str(e), error_code="STORAGE_ERROR")
        return LicenseResult(success=True, message="Saved license cleared")

    def is_license_expiring_soon(self, warning_days: int | None = None) -> bool:
        """True iff a currently valid saved license has warning_days or fewer left."""
        if warning_days is None:
            warning_days = self._config.expiry_warning_days
        current = self.get_current_license()
        if current is None:
            return False
        return current.days_remaining <= warning_days

    def check_access(self, role: str | None) -> AccessDecision:
        """License gate for the app. Admins are never blocked by licensing."""
        if role == "admin":
            return AccessDecision(allowed=True, admin_bypass=True)
        check = self.check_saved_license()
        return AccessDecision(allowed=check.is_valid, check=check)

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def _new_license(self, request: CreateLicenseRequest, taken_keys: set[str]) -> License:
        """Build a license with a key not in taken_keys (taken_keys is updated)."""
        now = now_utc()
        license_id = str(uuid4())
        expires_at = now + timedelta(days=request.duration_days)

        for _ in range(self._config.key_generation_attempts):
            key = self._codec.encode(license_id, expires_at)
            if key not in taken_keys:
                break
            logger.warning("Generated license key collided with an existing key, retrying")
        else:
            raise KeyGenerationError(
                f"Could not generate a unique license key after "
                f"{self._config.key_generation_attempts} attempts"
            )

        taken_keys.add(key)
        return License(
            license_key=key,
            id=license_id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            created_at=now,
            expires_at=expires_at,
            duration_days=request.duration_days,
            is_active=True,
            activated_at=None,
            activated_by=None,
        )

    def create_license(self, request: CreateLicenseRequest, actor_id: str | None = None) -> LicenseResult:
        """Generate and store one license valid for request.duration_days."""
        result = self._create([request], actor_id)
        if not result.success:
            return result
        return LicenseResult(
            success=True,
            license=result.licenses[0],
            message="License created successfully",
        )

    def create_licenses(
        self,
        count: int,
        duration_days: int | None = None,
        actor_id: str | None = None,
    ) -> LicenseResult:
        """Generate count licenses for placeholder customers in one write."""
        if count < 1:
            return LicenseResult(
                success=False,
                error="Count must be at least 1",
                error_code="VALIDATION_ERROR",
            )
        days = duration_days or self._config.default_duration_days
        requests = [
            CreateLicenseRequest(
                customer_name=f"Customer {i}",
                customer_email=f"customer{i}@example.com",
                duration_days=days,
            )
            for i in range(1, count + 1)
        ]
        return self._create(requests, actor_id)

    def _create(self, requests: list[CreateLicenseRequest], actor_id: str | None) -> LicenseResult:
        try:
            created = self._licenses.add_generated(
                lambda taken: [self._new_license(request, taken) for request in requests]
            )
        except LicenseError as e:
            return LicenseResult(success=False, error=str(e), error_code=e.error_code)
        except StorageError as e:
            logger.error(f"Saving licenses failed: {e}")
            return LicenseResult(
                success=False,
                error=f"Saving license failed: {e}",
                error_code="SAVE_ERROR",
            )

        for lic in created:
            logger.info(f"Created license {lic.id} expiring {lic.expires_at.isoformat()}")
            self._audit.log_change(
                entity_type="license",
                entity_id=lic.id,
                action=AuditAction.CREATE,
                changes={"created": lic.to_json_dict()},
                user_id=actor_id,
            )
        return LicenseResult(
            success=True,
            licenses=created,
            message=f"Created {len(created)} license(s)",
        )

    def update_license(self, request: UpdateLicenseRequest, actor_id: str | None = None) -> LicenseResult:
        """Edit customer details, the active flag and/or shift the expiry.

        With additional_days != 0 the expiry moves by that many days (negative
        shortens) and duration_days becomes the day-ceiling from created_at to
        the new expiry.
        """

        def apply(record: License) -> None:
            if request.customer_name is not None:
                record.customer_name = request.customer_name
            if request.customer_email is not None:
                record.customer_email = request.customer_email
            if request.is_active is not None:
                record.is_active = request.is_active

            if request.additional_days:
                record.expires_at = record.expires_at + timedelta(days=request.additional_days)
                record.duration_days = ceil_days(record.expires_at - record.created_at)

            record.updated_at = now_utc()

        try:
            updated = self._licenses.update(request.license_id, apply)
            if updated is None:
                raise LicenseRecordNotFoundError("License not found")
        except LicenseError as e:
            return LicenseResult(success=False, error=str(e), error_code=e.error_code)
        except StorageError as e:
            logger.error(f"Saving license {request.license_id} failed: {e}")
            return LicenseResult(
                success=False,
                error=f"Saving changes failed: {e}",
                error_code="SAVE_ERROR",
            )

        before, record = updated
        self._audit.log_change(
            entity_type="license",
            entity_id=record.id,
            action=AuditAction.UPDATE,
            changes=compute_changes(before.to_json_dict(), record.to_json_dict()),
            user_id=actor_id,
        )
        return LicenseResult(success=True, license=record, message="License updated successfully")

    def delete_license(self, license_id: str, actor_id: str | None = None) -> LicenseResult:
        """Delete a license by id."""
        try:
            record = self._licenses.delete(license_id)
            if record is None:
                raise LicenseRecordNotFoundError("License not found")
        except LicenseError as e:
            return LicenseResult(success=False, error=str(e), error_code=e.error_code)
        except StorageError as e:
            logger.error(f"Deleting license {license_id} failed: {e}")
            return LicenseResult(
                success=False,
                error=f"Saving changes failed: {e}",
                error_code="SAVE_ERROR",
            )

        self._audit.log_change(
            entity_type="license",
            entity_id=license_id,
            action=AuditAction.DELETE,
            changes={"deleted": record.to_json_dict()},
            user_id=actor_id,
        )
        return LicenseResult(success=True, license=record, message="License deleted successfully")

    def get_all_licenses(self) -> LicenseResult:
        """Every stored license, unfiltered."""
        try:
            licenses = self._licenses.list_all()
        except StorageError as e:
            logger.error(f"Reading licenses failed: {e}")
            return LicenseResult(
                success=False,
                error=f"Reading licenses failed: {e}",
                error_code="STORAGE_ERROR",
            )
        return LicenseResult(success=True, licenses=licenses)

    def get_license_stats(self, warning_days: int | None = None) -> LicenseStats:
        """Counters for the admin dashboard. Raises StorageError on read failure.

        Expired takes precedence over inactive; expiring_soon counts active
        licenses with warning_days or fewer remaining.
        """
        if warning_days is None:
            warning_days = self._config.expiry_warning_days
        now = now_utc()
        active = inactive = expired = expiring_soon = 0

        licenses = self._licenses.list_all()
        for lic in licenses:
            if now > lic.expires_at:
                expired += 1
            elif not lic.is_active:
                inactive += 1
            else:
                active += 1
                if days_until(lic.expires_at, now) <= warning_days:
                    expiring_soon += 1

        return LicenseStats(
            total=len(licenses),
            active=active,
            inactive=inactive,
            expired=expired,
            expiring_soon=expiring_soon,
        )
