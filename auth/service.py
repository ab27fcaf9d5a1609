"""Authentication service - orchestrates login, registration and user admin.

Every public method returns a result model instead of raising. Typed auth
errors and storage failures are caught here and turned into
success=False / is_valid=False results carrying error and error_code.
"""

import logging
import secrets
from uuid import uuid4

from auth.config import AuthConfig
from auth.database import UserRepository
from auth.exceptions import (
    AuthError,
    EmailTakenError,
    InvalidCredentialsError,
    UserExistsError,
    UsernameTakenError,
    UserNotFoundError,
)
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.session import SessionManager
from auth.types import (
    AuthResult,
    RegisterRequest,
    SessionCheck,
    UpdateUserRequest,
    UserListResult,
    UserRecord,
    UserStats,
)
from clients.json_store_client import StorageError
from core.audit import AuditAction, AuditLogger, compute_changes
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


def _auth_failure(error: AuthError) -> AuthResult:
    return AuthResult(success=False, error=str(error), error_code=error.error_code)


def _storage_failure(error_code: str, action: str, error: StorageError) -> AuthResult:
    logger.error(f"{action} failed: {error}")
    return AuthResult(success=False, error=f"{action} failed: {error}", error_code=error_code)


class AuthService:
    """Orchestrates local username/password authentication.

    Handles:
    - Registration and admin user management
    - Login (with enumeration-safe errors and legacy hash migration)
    - Session validation and logout
    """

    def __init__(
        self,
        config: AuthConfig,
        users: UserRepository,
        session_manager: SessionManager,
        hasher: PasswordHasher,
        security_logger: SecurityLogger,
        audit: AuditLogger,
    ):
        self._config = config
        self._users = users
        self._session_manager = session_manager
        self._hasher = hasher
        self._security_logger = security_logger
        self._audit = audit
        # Verified against on unknown logins; matches no real password
        self._decoy = hasher.hash_password(secrets.token_hex(16))

    @property
    def session_max_age(self) -> int:
        """Session lifetime in seconds, for cookie max-age."""
        return self._config.session_expiry_hours * 3600

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, request: RegisterRequest, actor_id: str | None = None) -> AuthResult:
        """Create a user account.

        Rejects with USER_EXISTS if the username or the email is already
        used by anyone (exact, case-sensitive match).
        """
        try:
            hashed = self._hasher.hash_password(request.password)
            record = UserRecord(
                id=f"user-{uuid4().hex}",
                username=request.username,
                email=request.email,
                full_name=request.full_name or request.username,
                role=request.role,
                is_active=True,
                created_at=now_utc(),
                last_login=None,
                password_hash=hashed.hash,
                password_salt=hashed.salt,
            )
            if not self._users.add_unique(record):
                raise UserExistsError("Username or email already exists")
        except AuthError as e:
            return _auth_failure(e)
        except StorageError as e:
            return _storage_failure("SAVE_ERROR", "Saving user", e)

        user = record.to_user()
        self._security_logger.log(
            SecurityEvent.USER_CREATED,
            username=user.username,
            user_id=user.id,
            details={"role": user.role, "by": actor_id},
        )
        self._audit.log_change(
            entity_type="user",
            entity_id=user.id,
            action=AuditAction.CREATE,
            changes={"created": user.to_json_dict()},
            user_id=actor_id,
        )
        return AuthResult(success=True, user=user, message="Account created successfully")

    def create_user(self, request: RegisterRequest, actor_id: str | None = None) -> AuthResult:
        """Admin creation of a user. Same rules as register()."""
        return self.register(request, actor_id=actor_id)

    # -------------------------------------------------------------------------
    # Login / sessions
    # -------------------------------------------------------------------------

    def login(self, identifier: str, password: str) -> AuthResult:
        """Log in with username or email.

        Flow:
        1. Find an active user whose username or email equals identifier
        2. Verify password (current policy, then legacy policies)
        3. Create session
        4. Stamp last_login (and migrate a legacy hash)

        Unknown user, inactive user and wrong password all return the same
        INVALID_CREDENTIALS failure.
        """
        try:
            record = self._users.find_active_by_login(identifier)
            if record is None:
                # Same PBKDF2 cost as a real check so timing does not reveal the miss
                self._hasher.verify(password, self._decoy.hash, self._decoy.salt)
                self._security_logger.log(
                    SecurityEvent.LOGIN_FAILED,
                    username=identifier,
                    details={"reason": "user_not_found_or_inactive"},
                )
                raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

            verified_hash = record.password_hash
            matched, needs_rehash = self._hasher.verify_any(
                password, verified_hash, record.password_salt
            )
            if not matched:
                self._security_logger.log(
                    SecurityEvent.LOGIN_FAILED,
                    username=identifier,
                    user_id=record.id,
                    details={"reason": "bad_password"},
                )
                raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

            rehashed = self._hasher.hash_password(password) if needs_rehash else None

            session = self._session_manager.create_session(record.id)

            def stamp(current: UserRecord, _records: list[UserRecord]) -> None:
                current.last_login = now_utc()
                # Skip the migration if the password changed since it was verified
                if rehashed and current.password_hash == verified_hash:
                    current.password_hash = rehashed.hash
                    current.password_salt = rehashed.salt

            updated = self._users.update(record.id, stamp)
            if updated is None:
                raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)
            record = updated[1]
            migrated = rehashed is not None and record.password_hash == rehashed.hash
        except AuthError as e:
            return _auth_failure(e)
        except StorageError as e:
            return _storage_failure("LOGIN_ERROR", "Login", e)

        if migrated:
            self._security_logger.log(
                SecurityEvent.PASSWORD_REHASHED,
                username=record.username,
                user_id=record.id,
                details={"iterations": self._hasher.policy.iterations},
            )
        self._security_logger.log(
            SecurityEvent.LOGIN_SUCCEEDED, username=record.username, user_id=record.id
        )
        self._security_logger.log(
            SecurityEvent.SESSION_CREATED, username=record.username, user_id=record.id
        )

        return AuthResult(
            success=True,
            user=record.to_user(),
            session_token=session.token,
            message="Logged in successfully",
        )

    def validate_session(self, token: str) -> SessionCheck:
        """Validate session token and resolve its user.

        Failure codes, in order: INVALID_SESSION, SESSION_EXPIRED, USER_NOT_FOUND.
        """
        try:
            session = self._session_manager.validate_session(token)

            record = self._users.get_by_id(session.user_id)
            if record is None or not record.is_active:
                raise UserNotFoundError("User not found or inactive")
        except AuthError as e:
            if e.error_code == "SESSION_EXPIRED":
                self._security_logger.log(SecurityEvent.SESSION_EXPIRED)
            return SessionCheck(is_valid=False, error=str(e), error_code=e.error_code)
        except StorageError as e:
            logger.error(f"Session validation failed: {e}")
            return SessionCheck(
                is_valid=False,
                error=f"Session validation failed: {e}",
                error_code="VALIDATION_ERROR",
            )

        return SessionCheck(is_valid=True, user=record.to_user(), session=session)

    def logout(self, token: str) -> AuthResult:
        """Revoke session (logout).

        Safe to call with an unknown or already revoked token.
        """
        try:
            found = self._session_manager.revoke_session(token)
        except StorageError as e:
            return _storage_failure("LOGOUT_ERROR", "Logout", e)

        if found:
            self._security_logger.log(SecurityEvent.SESSION_REVOKED)
        return AuthResult(success=True, message="Logged out successfully")

    def purge_expired_sessions(self) -> int:
        """Remove expired sessions. Intended for an external scheduler.

        Raises StorageError if the sessions file cannot be rewritten.
        """
        count = self._session_manager.purge_expired_sessions()
        if count:
            self._security_logger.log(SecurityEvent.SESSIONS_PURGED, details={"count": count})
        logger.info(f"Purged {count} expired sessions")
        return count

    # -------------------------------------------------------------------------
    # User administration
    # -------------------------------------------------------------------------

    def list_users(self) -> UserListResult:
        """All users, sanitized."""
        try:
            records = self._users.list_records()
        except StorageError as e:
            logger.error(f"Listing users failed: {e}")
            return UserListResult(success=False, error=str(e), error_code="STORAGE_ERROR")
        return UserListResult(success=True, users=[r.to_user() for r in records])

    def update_user(self, request: UpdateUserRequest, actor_id: str | None = None) -> AuthResult:
        """Edit a user in place.

        Rejects a username or email held by a different user. A new password
        is hashed with a fresh salt.
        """
        hashed = self._hasher.hash_password(request.new_password) if request.new_password else None

        def apply(record: UserRecord, records: list[UserRecord]) -> None:
            others = [r for r in records if r.id != record.id]
            if any(r.username == request.username for r in others):
                raise UsernameTakenError("Username already exists")
            if any(r.email == request.email for r in others):
                raise EmailTakenError("Email already exists")

            record.username = request.username
            record.email = request.email
            record.full_name = request.full_name
            record.role = request.role
            record.is_active = request.is_active
            record.updated_at = now_utc()
            if hashed:
                record.password_hash = hashed.hash
                record.password_salt = hashed.salt

        try:
            updated = self._users.update(request.user_id, apply)
            if updated is None:
                raise UserNotFoundError("User not found")
        except AuthError as e:
            return _auth_failure(e)
        except StorageError as e:
            return _storage_failure("SAVE_ERROR", "Saving user", e)

        before, record = updated
        self._security_logger.log(
            SecurityEvent.USER_UPDATED,
            username=record.username,
            user_id=record.id,
            details={"by": actor_id, "password_changed": hashed is not None},
        )
        self._audit.log_change(
            entity_type="user",
            entity_id=record.id,
            action=AuditAction.UPDATE,
            changes=compute_changes(before.to_json_dict(), record.to_json_dict()),
            user_id=actor_id,
        )
        return AuthResult(success=True, user=record.to_user(), message="User updated successfully")

    def set_user_active(self, user_id: str, is_active: bool, actor_id: str | None = None) -> AuthResult:
        """Activate or deactivate a user. Deactivated users cannot log in."""

        def apply(record: UserRecord, _records: list[UserRecord]) -> None:
            record.is_active = is_active
            record.updated_at = now_utc()

        try:
            updated = self._users.update(user_id, apply)
            if updated is None:
                raise UserNotFoundError("User not found")
        except AuthError as e:
            return _auth_failure(e)
        except StorageError as e:
            return _storage_failure("SAVE_ERROR", "Saving user", e)

        before, record = updated
        self._security_logger.log(
            SecurityEvent.USER_ACTIVATED if is_active else SecurityEvent.USER_DEACTIVATED,
            username=record.username,
            user_id=record.id,
            details={"by": actor_id},
        )
        self._audit.log_change(
            entity_type="user",
            entity_id=record.id,
            action=AuditAction.UPDATE,
            changes={"isActive": {"old": before.is_active, "new": is_active}},
            user_id=actor_id,
        )
        status = "activated" if is_active else "deactivated"
        return AuthResult(success=True, user=record.to_user(), message=f"User {status} successfully")

    def delete_user(self, user_id: str, actor_id: str | None = None) -> AuthResult:
        """Permanently delete a user.

        The default admin is not protected; deleting it is allowed.
        """
        try:
            record = self._users.delete(user_id)
            if record is None:
                raise UserNotFoundError("User not found")
        except AuthError as e:
            return _auth_failure(e)
        except StorageError as e:
            return _storage_failure("SAVE_ERROR", "Deleting user", e)

        user = record.to_user()
        self._security_logger.log(
            SecurityEvent.USER_DELETED,
            username=user.username,
            user_id=user.id,
            details={"by": actor_id},
        )
        self._audit.log_change(
            entity_type="user",
            entity_id=user.id,
            action=AuditAction.DELETE,
            changes={"deleted": user.to_json_dict()},
            user_id=actor_id,
        )
        return AuthResult(success=True, user=user, message="User deleted successfully")

    def reset_admin_account(self) -> AuthResult:
        """Recreate the default admin, dropping every existing admin-role user."""
        try:
            admin = self._users.build_default_admin()
            removed = self._users.replace_admins(admin)
        except StorageError as e:
            return _storage_failure("SAVE_ERROR", "Resetting admin account", e)

        self._security_logger.log(
            SecurityEvent.ADMIN_RESET,
            username=admin.username,
            user_id=admin.id,
            details={"removed_admins": removed},
        )
        logger.info(f"Default admin account reset ({removed} admin records replaced)")
        return AuthResult(
            success=True,
            user=admin.to_user(),
            message="Admin account created successfully",
        )

    def get_user_stats(self) -> UserStats:
        """User counters for the admin dashboard. Raises StorageError on read failure."""
        records = self._users.list_records()
        return UserStats(
            total=len(records),
            active=sum(1 for r in records if r.is_active),
            admins=sum(1 for r in records if r.role == "admin"),
        )
