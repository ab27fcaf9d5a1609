"""Tests for auth/session.py - session lifecycle."""

import pytest

from auth.database import SessionRepository
from auth.exceptions import InvalidSessionError, SessionExpiredError
from auth.session import SessionManager


@pytest.fixture
def manager(memory_store, auth_config):
    return SessionManager(SessionRepository(memory_store), auth_config)


class TestCreateSession:
    """Tests for create_session()."""

    def test_token_is_64_hex_chars(self, manager, clock):
        session = manager.create_session("user-1")
        assert len(session.token) == 64
        int(session.token, 16)

    def test_fixed_expiry(self, manager, clock, auth_config):
        session = manager.create_session("user-1")
        assert session.created_at == clock.now
        assert (session.expires_at - session.created_at).total_seconds() == (
            auth_config.session_expiry_hours * 3600
        )
        assert session.is_active is True

    def test_tokens_unique(self, manager, clock):
        tokens = {manager.create_session("user-1").token for _ in range(20)}
        assert len(tokens) == 20


class TestValidateSession:
    """Tests for validate_session()."""

    def test_valid(self, manager, clock):
        created = manager.create_session("user-1")
        assert manager.validate_session(created.token).user_id == "user-1"

    def test_unknown_token(self, manager, clock):
        with pytest.raises(InvalidSessionError):
            manager.validate_session("f" * 64)

    def test_empty_token(self, manager, clock):
        with pytest.raises(InvalidSessionError):
            manager.validate_session("")

    def test_revoked(self, manager, clock):
        created = manager.create_session("user-1")
        manager.revoke_session(created.token)
        with pytest.raises(InvalidSessionError):
            manager.validate_session(created.token)

    def test_expired(self, manager, clock):
        created = manager.create_session("user-1")
        clock.advance(hours=24, seconds=1)
        with pytest.raises(SessionExpiredError):
            manager.validate_session(created.token)

    def test_valid_at_exact_expiry(self, manager, clock):
        created = manager.create_session("user-1")
        clock.advance(hours=24)
        assert manager.validate_session(created.token).token == created.token

    def test_no_sliding_extension(self, manager, clock):
        created = manager.create_session("user-1")
        clock.advance(hours=23)
        manager.validate_session(created.token)
        clock.advance(hours=2)
        with pytest.raises(SessionExpiredError):
            manager.validate_session(created.token)


class TestRevokeAndPurge:
    """Tests for revoke_session() and purge_expired_sessions()."""

    def test_revoke_unknown_is_safe(self, manager, clock):
        assert manager.revoke_session("nope") is False

    def test_purge_removes_only_expired(self, manager, clock):
        old = manager.create_session("user-1")
        clock.advance(hours=12)
        fresh = manager.create_session("user-1")
        clock.advance(hours=13)

        assert manager.purge_expired_sessions() == 1
        with pytest.raises(InvalidSessionError):
            manager.validate_session(old.token)
        assert manager.validate_session(fresh.token).token == fresh.token
