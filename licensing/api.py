"""HTTP routes for license validation, activation and administration."""

from fastapi import APIRouter, Request
from pydantic import Field

from api.base import ErrorCodes, error_json, success_response
from auth.security_middleware import forbid_non_admin
from licensing.service import LicenseService
from licensing.types import (
    CreateLicenseRequest,
    LicenseCheck,
    LicenseResult,
    UpdateLicenseRequest,
)
from utils.models import CamelModel


class LicenseKeyRequest(CamelModel):
    license_key: str = ""


class BatchCreateRequest(CamelModel):
    count: int = Field(..., ge=1, le=1000)
    duration_days: int | None = Field(default=None, ge=1)


class LicenseEditRequest(CamelModel):
    """Body of PUT /licenses/{license_id}; the id comes from the path."""

    customer_name: str | None = None
    customer_email: str | None = None
    is_active: bool | None = None
    additional_days: int = 0


def _check_response(check: LicenseCheck):
    if check.is_valid:
        return success_response(check.to_json_dict())
    # A storage failure during a check is a server fault, not a bad key
    status = 500 if check.error_code == ErrorCodes.VALIDATION_ERROR else None
    return error_json(check.error_code, check.error, status_code=status, details=check.to_json_dict())


def _result_response(result: LicenseResult):
    if not result.success:
        return error_json(result.error_code, result.error)
    return success_response(result.to_json_dict())


def create_license_router(license_service: LicenseService) -> APIRouter:
    """Create license router with injected service."""
    router = APIRouter(tags=["licenses"])

    @router.post("/validate")
    async def validate_license(body: LicenseKeyRequest):
        """Check a key without activating it."""
        return _check_response(license_service.validate_license(body.license_key))

    @router.post("/activate")
    async def activate_license(request: Request, body: LicenseKeyRequest):
        """Validate a key and save it as this installation's license."""
        user = getattr(request.state, "user", None)
        check = license_service.activate_license(
            body.license_key,
            activated_by=user.id if user else None,
        )
        return _check_response(check)

    @router.get("/saved")
    async def check_saved_license():
        """Re-validate the saved license."""
        return _check_response(license_service.check_saved_license())

    @router.delete("/saved")
    async def clear_saved_license():
        return _result_response(license_service.clear_saved_license())

    @router.get("/current")
    async def get_current_license():
        """The saved license if it is currently valid, else null."""
        current = license_service.get_current_license()
        return success_response(current.to_json_dict() if current else None)

    @router.get("/expiring-soon")
    async def expiring_soon(days: int | None = None):
        return success_response(
            {"expiringSoon": license_service.is_license_expiring_soon(days)}
        )

    @router.get("/access")
    async def check_access(request: Request):
        """Whether the logged-in user may use the app right now."""
        decision = license_service.check_access(request.state.user.role)
        return success_response(decision.to_json_dict())

    # -------------------------------------------------------------------------
    # Admin only
    # -------------------------------------------------------------------------

    @router.get("")
    async def list_licenses(request: Request):
        if denied := forbid_non_admin(request):
            return denied
        return _result_response(license_service.get_all_licenses())

    @router.get("/stats")
    async def license_stats(request: Request, days: int | None = None):
        if denied := forbid_non_admin(request):
            return denied
        return success_response(license_service.get_license_stats(days).to_json_dict())

    @router.post("")
    async def create_license(request: Request, body: CreateLicenseRequest):
        if denied := forbid_non_admin(request):
            return denied
        return _result_response(
            license_service.create_license(body, actor_id=request.state.user.id)
        )

    @router.post("/batch")
    async def create_licenses(request: Request, body: BatchCreateRequest):
        if denied := forbid_non_admin(request):
            return denied
        return _result_response(
            license_service.create_licenses(
                body.count,
                body.duration_days,
                actor_id=request.state.user.id,
            )
        )

    @router.put("/{license_id}")
    async def update_license(request: Request, license_id: str, body: LicenseEditRequest):
        if denied := forbid_non_admin(request):
            return denied
        update = UpdateLicenseRequest(license_id=license_id, **body.model_dump())
        return _result_response(
            license_service.update_license(update, actor_id=request.state.user.id)
        )

    @router.delete("/{license_id}")
    async def delete_license(request: Request, license_id: str):
        if denied := forbid_non_admin(request):
            return denied
        return _result_response(
            license_service.delete_license(license_id, actor_id=request.state.user.id)
        )

    return router
