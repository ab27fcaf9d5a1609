"""Tests for cli.py - administrative commands."""

import pytest

from cli import run
from clients.json_store_client import MemoryStoreClient


@pytest.fixture
def store() -> MemoryStoreClient:
    return MemoryStoreClient()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("MARKET_MANAGER_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("MARKET_MANAGER_LICENSE_SECRET", raising=False)
    monkeypatch.delenv("MARKET_MANAGER_DISPLAY_TZ", raising=False)


class TestGenerate:
    """Tests for `generate COUNT DAYS` and `single NAME EMAIL DAYS`."""

    def test_generate(self, store, capsys):
        assert run(["generate", "3", "30"], store=store) == 0

        lines = capsys.readouterr().out.splitlines()
        assert len([line for line in lines if line.startswith("MM-")]) == 3
        assert lines[-1] == "generated 3 license(s) valid for 30 day(s)"
        assert len(store.read_collection("licenses")) == 3

    def test_single(self, store, capsys):
        assert run(["single", "Acme Corp", "ops@acme.test", "90"], store=store) == 0

        out = capsys.readouterr().out
        assert "license key: MM-" in out
        assert "Acme Corp <ops@acme.test>" in out
        [row] = store.read_collection("licenses")
        assert row["durationDays"] == 90

    def test_days_must_be_positive(self, store):
        with pytest.raises(SystemExit) as exc:
            run(["generate", "1", "0"], store=store)
        assert exc.value.code == 2


class TestList:
    """Tests for `list`."""

    def test_lists_with_status(self, store, capsys):
        run(["single", "Acme", "ops@acme.test", "30"], store=store)
        capsys.readouterr()

        assert run(["list"], store=store) == 0

        out = capsys.readouterr().out
        assert "total licenses: 1" in out
        assert "[active]" in out

    def test_empty(self, store, capsys):
        assert run(["list"], store=store) == 0
        assert "total licenses: 0" in capsys.readouterr().out


class TestAccounts:
    """Tests for `create-admin` and `purge-sessions`."""

    def test_create_admin(self, store, capsys):
        assert run(["create-admin"], store=store) == 0
        assert "admin account reset: admin (id admin-001)" in capsys.readouterr().out

    def test_purge_sessions(self, store, capsys):
        assert run(["purge-sessions"], store=store) == 0
        assert "purged 0 expired session(s)" in capsys.readouterr().out

    def test_uses_data_dir_option(self, tmp_path, capsys):
        data_dir = tmp_path / "elsewhere"
        assert run(["--data-dir", str(data_dir), "generate", "1", "7"]) == 0
        assert (data_dir / "licenses.json").is_file()

    def test_purge_sessions_storage_failure(self, store, capsys):
        store.write_collection("sessions", [{"token": "broken"}])

        assert run(["purge-sessions"], store=store) == 1
        assert "error: sessions: malformed Session record" in capsys.readouterr().err
