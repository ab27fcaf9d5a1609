"""Tests for auth/security_logger.py - append-only security event log."""

import json

import pytest

from auth.security_logger import SECURITY_EVENTS_COLLECTION, SecurityEvent, SecurityLogger


@pytest.fixture
def security_logger(memory_store):
    return SecurityLogger(memory_store)


class TestLog:
    """Tests for log()."""

    def test_appends_event(self, security_logger, memory_store):
        security_logger.log(
            SecurityEvent.LOGIN_FAILED,
            username="bob",
            details={"reason": "bad_password"},
        )

        [row] = memory_store.read_collection(SECURITY_EVENTS_COLLECTION)
        assert row["eventType"] == "login_failed"
        assert row["username"] == "bob"
        assert row["userId"] is None
        assert row["details"] == {"reason": "bad_password"}
        assert row["createdAt"].endswith("+00:00")

    def test_write_failure_not_raised(self, failing_store):
        failing_store.fail_writes.add(SECURITY_EVENTS_COLLECTION)
        SecurityLogger(failing_store).log(SecurityEvent.ADMIN_RESET)


class TestGetRecentEvents:
    """Tests for get_recent_events()."""

    def test_newest_first_with_filters(self, security_logger):
        security_logger.log(SecurityEvent.LOGIN_SUCCEEDED, username="bob", user_id="u1")
        security_logger.log(SecurityEvent.LOGIN_FAILED, username="bob")
        security_logger.log(SecurityEvent.LOGIN_SUCCEEDED, username="amy", user_id="u2")
        security_logger.log(SecurityEvent.SESSION_REVOKED, username="bob", user_id="u1")

        bob = security_logger.get_recent_events(username="bob")
        assert [e["eventType"] for e in bob] == ["session_revoked", "login_failed", "login_succeeded"]

        logins = security_logger.get_recent_events(event_type=SecurityEvent.LOGIN_SUCCEEDED)
        assert [e["username"] for e in logins] == ["amy", "bob"]

        assert len(security_logger.get_recent_events(user_id="u1", limit=1)) == 1


class TestRotateLogs:
    """Tests for rotate_logs()."""

    def test_archives_old_events(self, security_logger, memory_store, tmp_path, monkeypatch):
        from datetime import datetime, timezone

        monkeypatch.setattr(
            "auth.security_logger.now_utc",
            lambda: datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        security_logger.log(SecurityEvent.LOGIN_SUCCEEDED, username="old")
        monkeypatch.setattr(
            "auth.security_logger.now_utc",
            lambda: datetime(2024, 3, 1, tzinfo=timezone.utc),
        )
        security_logger.log(SecurityEvent.LOGIN_SUCCEEDED, username="new")

        archive = tmp_path / "security_events.jsonl"
        archived = security_logger.rotate_logs(older_than_days=30, output_path=archive)

        assert archived == 1
        [line] = archive.read_text(encoding="utf-8").splitlines()
        assert json.loads(line)["username"] == "old"
        [remaining] = memory_store.read_collection(SECURITY_EVENTS_COLLECTION)
        assert remaining["username"] == "new"

    def test_nothing_to_archive(self, security_logger, tmp_path):
        security_logger.log(SecurityEvent.LOGIN_SUCCEEDED, username="fresh")
        archive = tmp_path / "archive.jsonl"

        assert security_logger.rotate_logs(older_than_days=30, output_path=archive) == 0
        assert not archive.exists()
