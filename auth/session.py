"""Session token lifecycle management.

Sessions live in sessions.json with a fixed expiry set at creation.
Token format is cryptographically random (secrets.token_hex).
Expiry is checked lazily on validation; purge_expired_sessions() is the only
thing that ever removes a session and is meant to be called by a scheduler.
"""

import secrets
from datetime import timedelta

from auth.config import AuthConfig
from auth.database import SessionRepository
from auth.exceptions import InvalidSessionError, SessionExpiredError
from auth.types import Session
from utils.timezone import now_utc


class SessionManager:
    """Session token lifecycle management."""

    def __init__(self, sessions: SessionRepository, config: AuthConfig):
        self._sessions = sessions
        self._config = config

    def create_session(self, user_id: str) -> Session:
        """Create and persist a new active session for user."""
        now = now_utc()
        session = Session(
            token=secrets.token_hex(self._config.session_token_bytes),
            user_id=user_id,
            created_at=now,
            expires_at=now + timedelta(hours=self._config.session_expiry_hours),
            is_active=True,
        )
        self._sessions.add(session)
        return session

    def validate_session(self, token: str) -> Session:
        """Return the session if active and unexpired.

        Raises:
            InvalidSessionError: Token unknown or revoked.
            SessionExpiredError: Token past its expiry.
        """
        session = self._sessions.get(token) if token else None

        if session is None or not session.is_active:
            raise InvalidSessionError("Invalid session")

        if now_utc() > session.expires_at:
            raise SessionExpiredError("Session expired")

        return session

    def revoke_session(self, token: str) -> bool:
        """Soft-revoke (logout).

        Safe to call with nonexistent token. Returns True if a session was found.
        """
        return self._sessions.deactivate(token)

    def purge_expired_sessions(self) -> int:
        """Delete every session past its expiry. Returns count deleted."""
        return self._sessions.delete_expired(now_utc())
