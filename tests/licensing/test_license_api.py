"""Tests for license API routes."""

import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def app(settings, memory_store, clock):
    return create_app(settings=settings, store=memory_store)


@pytest.fixture
def client(app):
    return TestClient(app)


def _login(client, username="admin", password="admin123"):
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200


@pytest.fixture
def license_key(app):
    """A fresh 30-day license created through the service."""
    from licensing.types import CreateLicenseRequest

    service = app.state.license_service
    return service.create_license(CreateLicenseRequest(customer_name="Acme")).license.license_key


class TestPublicRoutes:
    """Validation and activation need no session."""

    def test_validate(self, client, license_key):
        response = client.post("/licenses/validate", json={"licenseKey": license_key})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isValid"] is True
        assert data["license"]["customerName"] == "Acme"
        assert data["license"]["daysRemaining"] == 30

    def test_validate_bad_format(self, client):
        response = client.post("/licenses/validate", json={"licenseKey": "bogus"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_FORMAT"

    def test_validate_missing_file(self, client):
        response = client.post("/licenses/validate", json={"licenseKey": "MM-abc"})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_LICENSE_FILE"

    def test_expired_includes_date(self, client, license_key, clock):
        clock.advance(days=31)

        response = client.post("/licenses/validate", json={"licenseKey": license_key})

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "LICENSE_EXPIRED"
        assert error["details"]["expiryDate"] == "2024-07-01"

    def test_activate_then_saved_and_current(self, client, license_key):
        activated = client.post("/licenses/activate", json={"licenseKey": license_key})
        assert activated.status_code == 200
        assert activated.json()["data"]["message"] == "License activated successfully"

        saved = client.get("/licenses/saved")
        assert saved.json()["data"]["isValid"] is True

        current = client.get("/licenses/current").json()["data"]
        assert current["licenseKey"] == license_key
        assert current["activatedAt"]

        soon = client.get("/licenses/expiring-soon").json()["data"]
        assert soon == {"expiringSoon": False}

    def test_activation_records_logged_in_user(self, client, app, license_key):
        _login(client)
        client.post("/licenses/activate", json={"licenseKey": license_key})

        [stored] = app.state.license_service.get_all_licenses().licenses
        assert stored.activated_by == "admin-001"

    def test_no_saved_license(self, client):
        response = client.get("/licenses/saved")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_SAVED_LICENSE"
        assert client.get("/licenses/current").json()["data"] is None

    def test_clear_saved(self, client, license_key):
        client.post("/licenses/activate", json={"licenseKey": license_key})

        assert client.delete("/licenses/saved").status_code == 200
        assert client.get("/licenses/saved").status_code == 404


class TestAccess:
    """Test GET /licenses/access."""

    def test_requires_session(self, client):
        assert client.get("/licenses/access").status_code == 401

    def test_admin_bypass(self, client):
        _login(client)
        data = client.get("/licenses/access").json()["data"]
        assert data["allowed"] is True
        assert data["adminBypass"] is True

    def test_user_blocked_without_license(self, client):
        client.post("/auth/register", json={"username": "bob", "email": "bob@x.com", "password": "secret1"})
        _login(client, "bob", "secret1")

        data = client.get("/licenses/access").json()["data"]

        assert data["allowed"] is False
        assert data["check"]["errorCode"] == "NO_SAVED_LICENSE"


class TestAdminRoutes:
    """License administration requires an admin session."""

    def test_list_requires_admin(self, client):
        assert client.get("/licenses").status_code == 401

        client.post("/auth/register", json={"username": "bob", "email": "bob@x.com", "password": "secret1"})
        _login(client, "bob", "secret1")
        assert client.get("/licenses").status_code == 403

    def test_create_update_delete(self, client):
        _login(client)

        created = client.post(
            "/licenses",
            json={"customerName": "Globex", "customerEmail": "it@globex.test", "durationDays": 60},
        )
        assert created.status_code == 200
        lic = created.json()["data"]["license"]
        assert lic["durationDays"] == 60

        updated = client.put(
            f"/licenses/{lic['id']}",
            json={"additionalDays": 10, "isActive": False},
        )
        body = updated.json()["data"]["license"]
        assert body["durationDays"] == 70
        assert body["isActive"] is False

        listed = client.get("/licenses").json()["data"]["licenses"]
        assert [item["id"] for item in listed] == [lic["id"]]

        assert client.delete(f"/licenses/{lic['id']}").status_code == 200
        missing = client.delete(f"/licenses/{lic['id']}")
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "NOT_FOUND"

    def test_batch(self, client):
        _login(client)

        response = client.post("/licenses/batch", json={"count": 3, "durationDays": 7})

        licenses = response.json()["data"]["licenses"]
        assert [lic["customerName"] for lic in licenses] == ["Customer 1", "Customer 2", "Customer 3"]

    def test_batch_count_validated(self, client):
        _login(client)
        assert client.post("/licenses/batch", json={"count": 0}).status_code == 422

    def test_stats(self, client, license_key):
        _login(client)
        stats = client.get("/licenses/stats").json()["data"]
        assert stats == {"total": 1, "active": 1, "inactive": 0, "expired": 0, "expiringSoon": 0}
