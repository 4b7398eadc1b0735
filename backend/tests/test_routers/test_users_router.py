"""Integration tests for /api/users account and profile routes."""


class TestAccountRoutes:
    def test_notification_preferences(self, client, auth_headers):
        url = "/api/users/me/preferences/notifications"

        response = client.patch(url, headers=auth_headers, json={"notification_sound": False})
        assert response.status_code == 200
        assert response.json()["data"] == {
            "notification_sound": False,
            "email_notifications": True,
        }

        assert client.get(url, headers=auth_headers).json()["data"]["notification_sound"] is False

    def test_preferences_require_login(self, client):
        response = client.get("/api/users/me/preferences/notifications")
        assert response.status_code == 401

    def test_change_password(self, client, test_user, auth_headers):
        response = client.post(
            "/api/users/me/change-password",
            headers=auth_headers,
            json={"current_password": "password123", "new_password": "brand-new-pass"},
        )
        assert response.status_code == 200

        login = client.post(
            "/api/auth/login",
            data={"username": test_user.email, "password": "brand-new-pass"},
        )
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, auth_headers):
        response = client.post(
            "/api/users/me/change-password",
            headers=auth_headers,
            json={"current_password": "not-my-pass", "new_password": "brand-new-pass"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_delete_account_then_locked_out(self, client, auth_headers):
        response = client.request(
            "DELETE", "/api/users/me", headers=auth_headers, json={"password": "password123"}
        )
        assert response.status_code == 200

        assert client.get("/api/auth/me", headers=auth_headers).status_code == 403

    def test_admin_reactivates_account(
        self, client, test_user, auth_headers, admin_headers
    ):
        client.request(
            "DELETE", "/api/users/me", headers=auth_headers, json={"password": "password123"}
        )

        response = client.post(
            f"/api/admin/users/{test_user.id}/reactivate", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is True
        assert client.get("/api/auth/me", headers=auth_headers).status_code == 200


class TestPublicUserRoutes:
    def test_user_posts(self, client, test_post):
        response = client.get("/api/users/alice/posts?limit=5")

        assert response.status_code == 200
        body = response.json()
        assert [p["slug"] for p in body["data"]] == [test_post.slug]
        assert body["meta"] == {"page": 1, "limit": 5, "total": 1, "hasMore": False}

    def test_user_posts_unknown_user(self, client):
        response = client.get("/api/users/nobody/posts")
        assert response.status_code == 404
