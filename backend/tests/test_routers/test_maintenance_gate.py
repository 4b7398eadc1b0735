"""Integration tests for the maintenance gate middleware."""

import pytest

from helpers.maintenance import is_exempt
from services.maintenance_service import MaintenanceService


@pytest.fixture
def maintenance_on(client, admin_headers):
    response = client.put(
        "/api/admin/maintenance",
        headers=admin_headers,
        json={"is_enabled": True, "message": "Upgrading the database"},
    )
    assert response.status_code == 200
    return response.json()["data"]


class TestIsExempt:
    @pytest.mark.parametrize(
        "path",
        [
            "/",
            "/docs",
            "/api/health",
            "/api/auth/login",
            "/api/admin/maintenance",
            "/api/moderator/queue",
        ],
    )
    def test_exempt_paths(self, path):
        assert is_exempt(path) is True

    @pytest.mark.parametrize("path", ["/api/posts", "/api/healthcheck", "/api/administer"])
    def test_gated_paths(self, path):
        assert is_exempt(path) is False


class TestMaintenanceGate:
    """Test cases for the gate as seen through HTTP."""

    def test_disabled_by_default(self, client):
        assert client.get("/api/posts").status_code == 200

    def test_blocks_anonymous_users(self, client, maintenance_on):
        response = client.get("/api/posts")

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "MAINTENANCE_MODE"
        assert body["error"]["message"] == "Upgrading the database"
        assert response.headers["Retry-After"] == "60"

    def test_blocks_plain_users(self, client, maintenance_on, auth_headers):
        response = client.get("/api/notifications", headers=auth_headers)

        assert response.status_code == 503

    def test_staff_bypass(self, client, maintenance_on, moderator_headers, admin_headers):
        assert client.get("/api/posts", headers=moderator_headers).status_code == 200
        assert client.get("/api/posts", headers=admin_headers).status_code == 200

    def test_exempt_routes_stay_open(self, client, maintenance_on, test_user):
        assert client.get("/api/health").status_code == 200

        login = client.post(
            "/api/auth/login",
            data={"username": test_user.email, "password": "password123"},
        )
        assert login.status_code == 200

    def test_bad_token_is_blocked(self, client, maintenance_on):
        response = client.get("/api/posts", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 503

    def test_disable_reopens(self, client, maintenance_on, admin_headers):
        client.put(
            "/api/admin/maintenance",
            headers=admin_headers,
            json={"is_enabled": False},
        )

        assert client.get("/api/posts").status_code == 200

    def test_fails_open(self, client, maintenance_on, monkeypatch):
        def broken(db):
            raise RuntimeError("settings table unavailable")

        monkeypatch.setattr(MaintenanceService, "get_snapshot", staticmethod(broken))

        assert client.get("/api/posts").status_code == 200
