"""HTTP routes for authentication and user administration."""

from fastapi import APIRouter, Request, Response

from api.base import success_response, error_json
from auth.security_middleware import SESSION_COOKIE, forbid_non_admin, get_session_token
from auth.service import AuthService
from auth.types import AuthResult, LoginRequest, RegisterRequest, UpdateUserRequest
from utils.models import CamelModel


class UserEditRequest(UpdateUserRequest):
    """Body of PUT /users/{user_id}; the id comes from the path."""

    user_id: str = ""


class UserStatusRequest(CamelModel):
    """Body for activating/deactivating a user."""

    is_active: bool


def _respond(result: AuthResult):
    if not result.success:
        return error_json(result.error_code, result.error)
    return success_response(result.to_json_dict())


def _actor_id(request: Request) -> str | None:
    user = getattr(request.state, "user", None)
    return user.id if user else None


def create_auth_router(auth_service: AuthService) -> APIRouter:
    """Create auth router with injected service."""
    router = APIRouter(tags=["auth"])

    @router.post("/register")
    async def register(body: RegisterRequest):
        """Self-registration. Always creates a regular user."""
        request = body.model_copy(update={"role": "user"})
        return _respond(auth_service.register(request))

    @router.post("/login")
    async def login(body: LoginRequest, response: Response):
        """Log in with username or email.

        Sets session_token cookie on success and also returns the token for
        clients that send it as a Bearer header.
        """
        result = auth_service.login(body.username, body.password)
        if not result.success:
            return error_json(result.error_code, result.error)

        response.set_cookie(
            key=SESSION_COOKIE,
            value=result.session_token,
            httponly=True,
            samesite="lax",
            max_age=auth_service.session_max_age,
        )
        return success_response(result.to_json_dict())

    @router.post("/logout")
    async def logout(request: Request, response: Response):
        """Logout - revoke session and clear cookie."""
        token = get_session_token(request)
        if token:
            result = auth_service.logout(token)
            if not result.success:
                return error_json(result.error_code, result.error)

        response.delete_cookie(key=SESSION_COOKIE)
        return success_response({"message": "Logged out successfully"})

    @router.get("/session")
    async def validate_session(request: Request):
        """Validate the caller's session and return the user behind it."""
        check = auth_service.validate_session(get_session_token(request) or "")
        if not check.is_valid:
            return error_json(check.error_code, check.error)
        return success_response(check.to_json_dict())

    @router.get("/me")
    async def get_current_user(request: Request):
        """Current authenticated user (set by AuthMiddleware)."""
        return success_response(request.state.user.to_json_dict())

    # -------------------------------------------------------------------------
    # Admin only
    # -------------------------------------------------------------------------

    @router.get("/users")
    async def list_users(request: Request):
        if denied := forbid_non_admin(request):
            return denied
        result = auth_service.list_users()
        if not result.success:
            return error_json(result.error_code, result.error)
        return success_response([u.to_json_dict() for u in result.users])

    @router.get("/users/stats")
    async def user_stats(request: Request):
        if denied := forbid_non_admin(request):
            return denied
        return success_response(auth_service.get_user_stats().to_json_dict())

    @router.post("/users")
    async def create_user(request: Request, body: RegisterRequest):
        if denied := forbid_non_admin(request):
            return denied
        return _respond(auth_service.create_user(body, actor_id=_actor_id(request)))

    @router.put("/users/{user_id}")
    async def update_user(request: Request, user_id: str, body: UserEditRequest):
        if denied := forbid_non_admin(request):
            return denied
        update = UpdateUserRequest(**body.model_dump(exclude={"user_id"}), user_id=user_id)
        return _respond(auth_service.update_user(update, actor_id=_actor_id(request)))

    @router.patch("/users/{user_id}/status")
    async def set_user_status(request: Request, user_id: str, body: UserStatusRequest):
        if denied := forbid_non_admin(request):
            return denied
        return _respond(
            auth_service.set_user_active(user_id, body.is_active, actor_id=_actor_id(request))
        )

    @router.delete("/users/{user_id}")
    async def delete_user(request: Request, user_id: str):
        if denied := forbid_non_admin(request):
            return denied
        return _respond(auth_service.delete_user(user_id, actor_id=_actor_id(request)))

    @router.post("/sessions/purge")
    async def purge_sessions(request: Request):
        if denied := forbid_non_admin(request):
            return denied
        return success_response({"purged": auth_service.purge_expired_sessions()})

    return router
