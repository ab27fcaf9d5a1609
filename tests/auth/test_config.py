"""Tests for auth/config.py."""

import pytest
from pydantic import ValidationError

from auth.config import LEGACY_PASSWORD_POLICIES, AuthConfig, PasswordPolicy


class TestPasswordPolicy:
    """Tests for PasswordPolicy."""

    def test_defaults(self):
        policy = PasswordPolicy()
        assert policy.digest == "sha512"
        assert policy.iterations == 10000
        assert policy.hash_length == 64
        assert policy.salt_bytes == 16

    def test_iterations_floor(self):
        with pytest.raises(ValidationError):
            PasswordPolicy(iterations=999)

    def test_unknown_digest_rejected(self):
        with pytest.raises(ValidationError):
            PasswordPolicy(digest="md5")

    def test_frozen(self):
        with pytest.raises(ValidationError):
            PasswordPolicy().iterations = 20000

    def test_legacy_policies(self):
        assert [(p.iterations, p.hash_length) for p in LEGACY_PASSWORD_POLICIES] == [
            (1000, 64),
            (10000, 512),
        ]


class TestAuthConfig:
    """Tests for AuthConfig."""

    def test_defaults(self):
        config = AuthConfig()
        assert config.session_expiry_hours == 24
        assert config.default_admin_id == "admin-001"
        assert config.default_admin_username == "admin"
        assert config.default_admin_email == "admin@marketmanager.com"
        assert config.default_admin_password == "admin123"

    @pytest.mark.parametrize("hours", [0, 2161])
    def test_session_expiry_bounds(self, hours):
        with pytest.raises(ValidationError):
            AuthConfig(session_expiry_hours=hours)
