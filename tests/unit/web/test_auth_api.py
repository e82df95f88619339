"""Tests for the account endpoints."""

from fastapi.testclient import TestClient

from agnys.web.cookies import AUTH_COOKIE
from tests.helpers import PASSWORD, register


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_signs_in(self, client: TestClient):
        """Test that a new account gets a session cookie and a Bearer token."""
        body = register(client, email="  Alice@Example.com ")
        assert body["user"]["email"] == "alice@example.com"
        assert client.cookies.get(AUTH_COOKIE) == body["token"]

    def test_duplicate_email_rejected(self, client: TestClient):
        """Test that an email can only be registered once."""
        register(client)
        response = client.post("/api/auth/register", json={"email": "alice@example.com", "password": PASSWORD})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_weak_password_rejected(self, client: TestClient):
        """Test that passwords shorter than 6 characters are refused."""
        response = client.post("/api/auth/register", json={"email": "a@example.com", "password": "123"})
        assert response.status_code == 400
        assert response.json() == {"message": "Password must be at least 6 characters long", "type": "validation_error"}


class TestLogin:
    """Tests for login, logout and the current user."""

    def test_login_with_wrong_password(self, client: TestClient):
        """Test that bad credentials answer 401 without a cookie."""
        register(client)
        client.cookies.clear()
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"
        assert AUTH_COOKIE not in client.cookies

    def test_login_then_me(self, client: TestClient):
        """Test that login establishes a session usable by later requests."""
        register(client)
        client.cookies.clear()
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert response.status_code == 200

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "alice@example.com"

    def test_bearer_token_accepted(self, client: TestClient):
        """Test that API clients can authenticate with the Authorization header."""
        token = register(client)["token"]
        client.cookies.clear()
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_me_requires_session(self, client: TestClient):
        """Test that anonymous API calls answer 401 instead of redirecting."""
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"message": "Authentication required", "type": "authentication_error"}

    def test_logout_invalidates_session(self, client: TestClient):
        """Test that the session is gone server-side after logout."""
        token = register(client)["token"]
        response = client.post("/api/auth/logout")
        assert response.status_code == 204

        again = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert again.status_code == 401
