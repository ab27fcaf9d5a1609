"""Security middleware for FastAPI - session validation and admin checks."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from api.base import error_json, ErrorCodes
from auth.service import AuthService

SESSION_COOKIE = "session_token"


def get_session_token(request: Request) -> str | None:
    """Session token from the session cookie, or a Bearer Authorization header."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def forbid_non_admin(request: Request) -> JSONResponse | None:
    """Error response unless the authenticated user is an admin, else None."""
    user = getattr(request.state, "user", None)
    if user is None:
        return error_json(ErrorCodes.NOT_AUTHENTICATED, "Authentication required")
    if user.role != "admin":
        return error_json(ErrorCodes.FORBIDDEN, "Administrator access required")
    return None


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates the session and attaches the user.

    For protected routes:
    1. Extracts session token from cookie or Authorization header
    2. Validates session via AuthService (active, unexpired, user active)
    3. Sets request.state.user and request.state.session

    Public paths never require a session; a valid one is still attached.
    """

    PUBLIC_PATHS = [
        "/auth/login",
        "/auth/register",
        "/auth/logout",
        "/auth/session",
        "/licenses/validate",
        "/licenses/activate",
        "/licenses/saved",
        "/licenses/current",
        "/licenses/expiring-soon",
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, auth_service: AuthService):
        super().__init__(app)
        self._auth_service = auth_service

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        token = get_session_token(request)

        if self._is_public_path(request.url.path):
            # Identify the caller when possible, never block
            if token:
                check = self._auth_service.validate_session(token)
                if check.is_valid:
                    request.state.user = check.user
                    request.state.session = check.session
            return await call_next(request)

        if not token:
            return error_json(ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        check = self._auth_service.validate_session(token)
        if not check.is_valid:
            status = 500 if check.error_code == ErrorCodes.VALIDATION_ERROR else 401
            return error_json(check.error_code, check.error, status_code=status)

        request.state.user = check.user
        request.state.session = check.session
        return await call_next(request)
