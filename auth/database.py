"""File-backed repositories for users and sessions.

Both repositories sit on a clients.json_store_client store, so the same code
runs against users.json/sessions.json on disk or the in-memory store in tests.
Every mutation is a single locked read-modify-write of the whole collection.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from auth.config import AuthConfig
from auth.passwords import PasswordHasher
from auth.types import Session, UserRecord
from clients.json_store_client import BaseStoreClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
SESSIONS_COLLECTION = "sessions"


class UserRepository:
    """
    Credential store: user records including password hash and salt.

    The first read against a store without a users file creates it with the
    default admin account.
    """

    def __init__(self, store: BaseStoreClient, config: AuthConfig, hasher: PasswordHasher):
        self._store = store
        self._config = config
        self._hasher = hasher

    def build_default_admin(self) -> UserRecord:
        """Fresh default admin record with a newly salted password hash."""
        hashed = self._hasher.hash_password(self._config.default_admin_password)
        return UserRecord(
            id=self._config.default_admin_id,
            username=self._config.default_admin_username,
            email=self._config.default_admin_email,
            full_name=self._config.default_admin_full_name,
            role="admin",
            is_active=True,
            created_at=now_utc(),
            last_login=None,
            password_hash=hashed.hash,
            password_salt=hashed.salt,
        )

    def _ensure_bootstrapped(self) -> None:
        if self._store.exists(USERS_COLLECTION):
            return
        admin = self.build_default_admin()
        if self._store.create_collection(USERS_COLLECTION, [admin.to_json_dict()]):
            logger.info(f"Created default admin account: {admin.username}")

    def list_records(self) -> list[UserRecord]:
        """All stored users, credentials included."""
        self._ensure_bootstrapped()
        return [
            UserRecord.from_stored(row, USERS_COLLECTION)
            for row in self._store.read_collection(USERS_COLLECTION)
        ]

    def get_by_id(self, user_id: str) -> UserRecord | None:
        """Find user by id."""
        for record in self.list_records():
            if record.id == user_id:
                return record
        return None

    def find_active_by_login(self, identifier: str) -> UserRecord | None:
        """Find an active user whose username or email equals identifier (case-sensitive)."""
        for record in self.list_records():
            if record.is_active and identifier in (record.username, record.email):
                return record
        return None

    def add_unique(self, record: UserRecord) -> bool:
        """
        Append a new user unless its username or email is already taken.

        The check and the append happen under one lock.

        Returns:
            True if added, False if another user holds the username or email.
        """
        self._ensure_bootstrapped()
        with self._store.mutate_collection(USERS_COLLECTION) as rows:
            for row in rows:
                if row.get("username") == record.username or row.get("email") == record.email:
                    return False
            rows.append(record.to_json_dict())
        return True

    def update(
        self,
        user_id: str,
        apply: Callable[[UserRecord, list[UserRecord]], None],
    ) -> tuple[UserRecord, UserRecord] | None:
        """
        Read-modify-write one user under the collection lock.

        apply(record, all_records) edits record in place and may raise to
        abort; nothing is written then.

        Returns:
            (before, after) records, or None if no user has this id.
        """
        self._ensure_bootstrapped()
        with self._store.mutate_collection(USERS_COLLECTION) as rows:
            records = [UserRecord.from_stored(row, USERS_COLLECTION) for row in rows]
            for index, record in enumerate(records):
                if record.id == user_id:
                    before = record.model_copy(deep=True)
                    apply(record, records)
                    rows[index] = record.to_json_dict()
                    return before, record
        return None

    def delete(self, user_id: str) -> UserRecord | None:
        """
        Permanently remove a user. Sessions referencing it are left in place.

        Returns:
            The removed record, or None if not found.
        """
        self._ensure_bootstrapped()
        with self._store.mutate_collection(USERS_COLLECTION) as rows:
            for index, row in enumerate(rows):
                if row.get("id") == user_id:
                    record = UserRecord.from_stored(row, USERS_COLLECTION)
                    del rows[index]
                    return record
        return None

    def replace_admins(self, admin: UserRecord) -> int:
        """
        Drop every admin-role user and put admin first.

        Returns:
            Number of admin records removed.
        """
        self._ensure_bootstrapped()
        with self._store.mutate_collection(USERS_COLLECTION) as rows:
            others = [row for row in rows if row.get("role") != "admin"]
            removed = len(rows) - len(others)
            rows[:] = [admin.to_json_dict()] + others
        return removed


class SessionRepository:
    """Session store. Sessions are soft-revoked and only removed by purge."""

    def __init__(self, store: BaseStoreClient):
        self._store = store

    def list_all(self) -> list[Session]:
        return [
            Session.from_stored(row, SESSIONS_COLLECTION)
            for row in self._store.read_collection(SESSIONS_COLLECTION)
        ]

    def get(self, token: str) -> Session | None:
        """Find session by exact token, regardless of state."""
        for session in self.list_all():
            if session.token == token:
                return session
        return None

    def add(self, session: Session) -> None:
        with self._store.mutate_collection(SESSIONS_COLLECTION) as rows:
            rows.append(session.to_json_dict())

    def deactivate(self, token: str) -> bool:
        """
        Mark a session inactive.

        Returns:
            True if a session with this token existed.
        """
        with self._store.mutate_collection(SESSIONS_COLLECTION) as rows:
            for row in rows:
                if row.get("token") == token:
                    row["isActive"] = False
                    return True
        return False

    def delete_expired(self, now: datetime) -> int:
        """Delete sessions whose expiry is before now. Returns count deleted."""
        with self._store.mutate_collection(SESSIONS_COLLECTION) as rows:
            kept = [row for row in rows if Session.from_stored(row, SESSIONS_COLLECTION).expires_at >= now]
            removed = len(rows) - len(kept)
            rows[:] = kept
        return removed
