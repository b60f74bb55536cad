"""Tests for account and session router."""

from unittest.mock import patch


def _signup(client, email="dana@example.com", password="secret123", display_name="Dana"):
    return client.post(
        "/api/v1/auth/signup",
        json={"email": email, "password": password, "display_name": display_name},
    )


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestSignupAndLogin:
    def test_signup_returns_session(self, unauthenticated_client):
        response = _signup(unauthenticated_client)

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "dana@example.com"
        assert data["user"]["role"] == "citizen"
        assert data["user"]["is_admin"] is False
        assert data["token"]

    def test_duplicate_signup(self, unauthenticated_client):
        _signup(unauthenticated_client)

        response = _signup(unauthenticated_client)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMAIL_ALREADY_IN_USE"

    def test_short_password_rejected(self, unauthenticated_client):
        response = _signup(unauthenticated_client, password="123")

        assert response.status_code == 422

    def test_login_and_me(self, unauthenticated_client):
        _signup(unauthenticated_client)

        login = unauthenticated_client.post(
            "/api/v1/auth/login", json={"email": "dana@example.com", "password": "secret123"}
        )
        me = unauthenticated_client.get("/api/v1/auth/me", headers=_bearer(login.json()["token"]))

        assert login.status_code == 200
        assert me.status_code == 200
        assert me.json()["display_name"] == "Dana"

    def test_login_wrong_password(self, unauthenticated_client):
        _signup(unauthenticated_client)

        response = unauthenticated_client.post(
            "/api/v1/auth/login", json={"email": "dana@example.com", "password": "wrong-pass"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


class TestSessionManagement:
    def test_logout_revokes_token(self, unauthenticated_client):
        token = _signup(unauthenticated_client).json()["token"]

        logout = unauthenticated_client.post("/api/v1/auth/logout", headers=_bearer(token))
        me = unauthenticated_client.get("/api/v1/auth/me", headers=_bearer(token))

        assert logout.status_code == 204
        assert me.status_code == 401

    def test_logout_without_token(self, unauthenticated_client):
        response = unauthenticated_client.post("/api/v1/auth/logout")

        assert response.status_code == 401

    def test_reset_password_never_returns_the_credential(self, unauthenticated_client):
        _signup(unauthenticated_client, email="ops@example.com")

        reset = unauthenticated_client.post(
            "/api/v1/auth/reset-password", json={"email": "ops@example.com"}
        )
        old_login = unauthenticated_client.post(
            "/api/v1/auth/login", json={"email": "ops@example.com", "password": "secret123"}
        )

        assert reset.status_code == 202
        assert reset.content == b""
        assert old_login.status_code == 401

    def test_reset_password_unknown_email_looks_the_same(self, unauthenticated_client):
        response = unauthenticated_client.post(
            "/api/v1/auth/reset-password", json={"email": "nobody@example.com"}
        )

        assert response.status_code == 202
        assert response.content == b""

    def test_reset_password_delivered_out_of_band(self, unauthenticated_client):
        _signup(unauthenticated_client)

        with patch("trashmap.routers.auth.log") as mock_log:
            unauthenticated_client.post(
                "/api/v1/auth/reset-password", json={"email": "dana@example.com"}
            )

        temporary = mock_log.warning.call_args.kwargs["temporary_password"]
        login = unauthenticated_client.post(
            "/api/v1/auth/login", json={"email": "dana@example.com", "password": temporary}
        )
        assert login.status_code == 200

    def test_update_profile(self, unauthenticated_client):
        token = _signup(unauthenticated_client).json()["token"]

        response = unauthenticated_client.patch(
            "/api/v1/auth/profile", json={"display_name": "Dana K"}, headers=_bearer(token)
        )

        assert response.status_code == 200
        assert response.json()["display_name"] == "Dana K"


class TestExternalProvider:
    def test_account_routes_unsupported_with_clerk(self, clerk_client):
        response = _signup(clerk_client)

        assert response.status_code == 501
        assert response.json()["error"]["code"] == "NOT_SUPPORTED"

    def test_me_still_requires_token(self, clerk_client):
        response = clerk_client.get("/api/v1/auth/me")

        assert response.status_code == 401
