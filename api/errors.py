"""Global exception handlers for FastAPI.

Service methods return failure results instead of raising, so these only see
malformed request bodies, storage failures that escape a read-only helper
(stats, purge) and genuine bugs.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from api.base import ErrorCodes, error_json
from clients.json_store_client import StorageError

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


def _describe(exc: RequestValidationError) -> str:
    """One line per invalid field, e.g. 'body.password: String should have at least 6 characters'."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg', 'invalid')}")
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_json(ErrorCodes.VALIDATION_ERROR, _describe(exc), status_code=422)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Storage failure on {request.url.path} [{_request_id(request)}]: {exc}")
        return error_json(ErrorCodes.STORAGE_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.url.path} [{_request_id(request)}]")
        return error_json(ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
