"""Authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    UserExistsError,
    UsernameTakenError,
    EmailTakenError,
    UserNotFoundError,
    InvalidSessionError,
    SessionExpiredError,
)
from auth.types import (
    User,
    UserRecord,
    Session,
    RegisterRequest,
    LoginRequest,
    UpdateUserRequest,
    AuthResult,
    SessionCheck,
    UserStats,
    UserListResult,
)
from auth.config import AuthConfig, PasswordPolicy
from auth.passwords import PasswordHasher
from auth.database import UserRepository, SessionRepository
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.session import SessionManager
from auth.service import AuthService
from auth.security_middleware import AuthMiddleware
from auth.api import create_auth_router
