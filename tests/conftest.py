"""Shared test fixtures for the Market Manager test suite."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env")

from auth.config import AuthConfig, PasswordPolicy
from clients.json_store_client import JsonStoreClient, MemoryStoreClient, StorageError
from licensing.config import LicenseConfig
from settings import AppSettings


# =============================================================================
# CLOCK
# =============================================================================

# Every module that reads the clock through its own `now_utc` import
CLOCK_MODULES = (
    "auth.database",
    "auth.session",
    "auth.service",
    "licensing.service",
)

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Settable clock; advance() moves every patched module forward together."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock(monkeypatch) -> FrozenClock:
    """Pin now_utc() in the service modules to FIXED_NOW."""
    frozen = FrozenClock(FIXED_NOW)
    for module in CLOCK_MODULES:
        monkeypatch.setattr(f"{module}.now_utc", frozen)
    return frozen


# =============================================================================
# STORES
# =============================================================================


class FailingStore(MemoryStoreClient):
    """In-memory store whose reads and/or writes of chosen names fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()

    def _load(self, name):
        if name in self.fail_reads:
            raise StorageError(name, "simulated read failure")
        return super()._load(name)

    def _dump(self, name, data):
        if name in self.fail_writes:
            raise StorageError(name, "simulated write failure")
        super()._dump(name, data)

    def _remove(self, name):
        if name in self.fail_writes:
            raise StorageError(name, "simulated write failure")
        return super()._remove(name)


@pytest.fixture
def memory_store() -> MemoryStoreClient:
    """Empty in-memory store."""
    return MemoryStoreClient()


@pytest.fixture
def failing_store() -> FailingStore:
    """In-memory store with switchable failures."""
    return FailingStore()


@pytest.fixture
def file_store(tmp_path) -> JsonStoreClient:
    """File store rooted in a per-test temp directory."""
    return JsonStoreClient(tmp_path / "data")


# =============================================================================
# CONFIG
# =============================================================================


@pytest.fixture
def fast_policy() -> PasswordPolicy:
    """Cheapest allowed policy, keeps hashing out of test time."""
    return PasswordPolicy(iterations=1000, hash_length=32)


@pytest.fixture
def auth_config(fast_policy) -> AuthConfig:
    return AuthConfig(
        password_policy=fast_policy,
        legacy_password_policies=(PasswordPolicy(iterations=1000, hash_length=64),),
    )


@pytest.fixture
def license_config() -> LicenseConfig:
    return LicenseConfig(secret_key="test-secret-key")


@pytest.fixture
def settings(tmp_path, auth_config, license_config) -> AppSettings:
    return AppSettings(data_dir=tmp_path / "data", auth=auth_config, license=license_config)


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def auth_service(memory_store, settings):
    """AuthService over the in-memory store."""
    from main import build_auth_service

    return build_auth_service(settings, memory_store)


@pytest.fixture
def license_service(memory_store, settings):
    """LicenseService over the in-memory store."""
    from main import build_license_service

    return build_license_service(settings, memory_store)
