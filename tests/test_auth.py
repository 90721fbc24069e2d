"""
Tests for registration, login, the auth gate and the password reset flow.
"""

from datetime import timedelta

from jose import jwt

from conftest import PASSWORD, auth, register
from services.auth_service import auth_service
from utils.date_utils import utcnow


class TestRegisterAndLogin:
    """Account creation and credential checks."""

    def test_register_returns_token_and_user_without_password(self, client):
        """Register Alice, log in, and /me shows her name but no password."""
        token, user = register(client, "Alice")

        assert token
        assert user["name"] == "Alice"
        assert user["email"] == "alice@example.com"
        assert user["role"] == "user"
        assert "password" not in user and "passwordHash" not in user

        login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert login.status_code == 200

        me = client.get("/api/auth/me", headers=auth(login.json()["token"]))
        assert me.status_code == 200
        body = me.json()["user"]
        assert body["name"] == "Alice"
        assert "password" not in body and "passwordHash" not in body

    def test_duplicate_email_is_rejected_case_insensitively(self, client):
        """A second account with the same email in another case is refused."""
        register(client, "Alice")

        response = client.post(
            "/api/auth/register",
            json={"name": "Other", "email": "ALICE@Example.com", "password": PASSWORD},
        )

        assert response.status_code == 400
        assert response.json()["msg"] == "User already exists"

    def test_register_validation_lists_fields(self, client):
        """Missing name, bad email and short password are all reported."""
        response = client.post("/api/auth/register", json={"email": "not-an-email", "password": "123"})

        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"name", "email", "password"} <= fields

    def test_login_with_wrong_password(self, client):
        register(client, "Alice")

        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})

        assert response.status_code == 400
        assert response.json()["msg"] == "Invalid credentials"

    def test_login_with_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})

        assert response.status_code == 400
        assert response.json()["msg"] == "Invalid credentials"


class TestAuthGate:
    """Token extraction and verification on protected routes."""

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["msg"] == "No token, authorization denied"

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers=auth("not-a-jwt"))

        assert response.status_code == 401
        assert response.json()["msg"] == "Token is not valid"

    def test_token_signed_with_other_secret(self, client):
        register(client, "Alice")
        forged = jwt.encode({"sub": "someone", "type": "access"}, "other-secret", algorithm="HS256")

        response = client.get("/api/auth/me", headers=auth(forged))

        assert response.status_code == 401
        assert response.json()["msg"] == "Token is not valid"

    def test_expired_token(self, client, alice):
        """A token past its exp claim is rejected."""
        expired = jwt.encode(
            {"sub": alice["user"]["id"], "type": "access", "exp": utcnow() - timedelta(minutes=5)},
            "test-secret-key",
            algorithm="HS256",
        )

        response = client.get("/api/auth/me", headers=auth(expired))

        assert response.status_code == 401

    def test_x_auth_token_header_is_accepted(self, client, alice):
        response = client.get("/api/auth/me", headers={"x-auth-token": alice["token"]})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == alice["user"]["id"]

    def test_deactivated_account_is_refused(self, client, alice):
        """After deactivation the old token no longer works."""
        response = client.delete(f"/api/users/{alice['user']['id']}", headers=alice["headers"])
        assert response.status_code == 200

        me = client.get("/api/auth/me", headers=alice["headers"])
        assert me.status_code == 403
        assert me.json()["msg"] == "User account is disabled"

        login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert login.status_code == 403


class TestPasswordReset:
    """Forgot/reset password flow."""

    def _request_token(self, app, client, email):
        database = app.state.database

        async def request():
            async with database.session() as session:
                return await auth_service.request_password_reset(session, email)

        return client.portal.call(request)

    def test_forgot_password_does_not_reveal_unknown_email(self, client):
        response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_reset_password_with_valid_token(self, app, client, alice):
        token = self._request_token(app, client, "alice@example.com")

        response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "brand-new-pass"})

        assert response.status_code == 200
        assert response.json()["token"]

        login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "brand-new-pass"})
        assert login.status_code == 200

    def test_reset_token_is_single_use(self, app, client, alice):
        token = self._request_token(app, client, "alice@example.com")
        first = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "brand-new-pass"})
        assert first.status_code == 200

        second = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "another-pass"})

        assert second.status_code == 400
        assert second.json()["msg"] == "Invalid or expired token"

    def test_unknown_reset_token(self, client):
        response = client.post("/api/auth/reset-password", json={"token": "deadbeef", "newPassword": "brand-new-pass"})

        assert response.status_code == 400
        assert response.json()["msg"] == "Invalid or expired token"


def test_reset_token_hash_is_not_the_raw_token():
    """Only the sha256 digest of the reset token is stored."""
    from services.auth_service import hash_reset_token

    assert hash_reset_token("abc") != "abc"
    assert len(hash_reset_token("abc")) == 64
