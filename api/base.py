"""Unified API response format and error handling."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Extra context, e.g. a license expiry date")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    Every endpoint returns this structure, making client parsing predictable.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def success_response(data: Any) -> APIResponse:
    """Create a success response."""
    return APIResponse(
        success=True,
        data=data,
        error=None,
        meta=APIMeta(
            timestamp=now_utc(),
            request_id=str(uuid4()),
        ),
    )


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> APIResponse:
    """Create an error response."""
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message, details=details),
        meta=APIMeta(
            timestamp=now_utc(),
            request_id=str(uuid4()),
        ),
    )


class ErrorCodes:
    """
    Standard error codes for consistent error handling.

    Service results use the same codes in their error_code field.
    """

    # Authentication & Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_SESSION = "INVALID_SESSION"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Users
    USER_EXISTS = "USER_EXISTS"
    USERNAME_EXISTS = "USERNAME_EXISTS"
    EMAIL_EXISTS = "EMAIL_EXISTS"

    # Licensing
    INVALID_FORMAT = "INVALID_FORMAT"
    NO_LICENSE_FILE = "NO_LICENSE_FILE"
    LICENSE_NOT_FOUND = "LICENSE_NOT_FOUND"
    LICENSE_EXPIRED = "LICENSE_EXPIRED"
    LICENSE_INACTIVE = "LICENSE_INACTIVE"
    NO_SAVED_LICENSE = "NO_SAVED_LICENSE"
    KEY_GENERATION_ERROR = "KEY_GENERATION_ERROR"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Persistence
    SAVE_ERROR = "SAVE_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    REGISTRATION_ERROR = "REGISTRATION_ERROR"
    LOGIN_ERROR = "LOGIN_ERROR"
    LOGOUT_ERROR = "LOGOUT_ERROR"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"


# HTTP status for each failure code returned by the services
ERROR_STATUS = {
    ErrorCodes.NOT_AUTHENTICATED: 401,
    ErrorCodes.FORBIDDEN: 403,
    ErrorCodes.INVALID_CREDENTIALS: 401,
    ErrorCodes.INVALID_SESSION: 401,
    ErrorCodes.SESSION_EXPIRED: 401,
    ErrorCodes.USER_NOT_FOUND: 404,
    ErrorCodes.USER_EXISTS: 409,
    ErrorCodes.USERNAME_EXISTS: 409,
    ErrorCodes.EMAIL_EXISTS: 409,
    ErrorCodes.INVALID_FORMAT: 400,
    ErrorCodes.NO_LICENSE_FILE: 404,
    ErrorCodes.LICENSE_NOT_FOUND: 404,
    ErrorCodes.LICENSE_EXPIRED: 403,
    ErrorCodes.LICENSE_INACTIVE: 403,
    ErrorCodes.NO_SAVED_LICENSE: 404,
    ErrorCodes.NOT_FOUND: 404,
    ErrorCodes.VALIDATION_ERROR: 400,
    ErrorCodes.INVALID_REQUEST: 400,
}


def error_json(
    code: str | None,
    message: str | None,
    status_code: int | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """JSONResponse carrying an error envelope, status derived from code."""
    code = code or ErrorCodes.INTERNAL_ERROR
    return JSONResponse(
        status_code=status_code or ERROR_STATUS.get(code, 500),
        content=error_response(code, message or "Request failed", details).model_dump(mode="json"),
    )
