"""Tests for the request gate: routing policy, session rotation and fail-closed behavior."""

import pytest
from fastapi.testclient import TestClient

from agnys.web.cookies import AUTH_COOKIE
from agnys.web.gate import LANDING_PATH, LOGIN_PATH, decide
from tests.helpers import register


def auth_cookie_headers(response) -> list[str]:
    return [value for value in response.headers.get_list("set-cookie") if value.startswith(f"{AUTH_COOKIE}=")]


class TestDecide:
    """Tests for the pure routing policy."""

    @pytest.mark.parametrize("path", ["/dashboard", "/projects/123", "/projects"])
    def test_protected_path_without_session_redirects_to_login(self, path):
        """Test that protected prefixes send anonymous callers to the login page."""
        assert decide(path, authenticated=False).redirect_to == LOGIN_PATH

    def test_login_page_with_session_redirects_to_dashboard(self):
        """Test that signed-in callers skip the login page."""
        assert decide("/auth/login", authenticated=True).redirect_to == LANDING_PATH

    @pytest.mark.parametrize(
        ("path", "authenticated"),
        [
            ("/auth/login", False),
            ("/dashboard", True),
            ("/projects/abc", True),
            ("/health", False),
            ("/api/projects/list", False),
            ("/api/auth/login", True),
        ],
    )
    def test_everything_else_passes_through(self, path, authenticated):
        """Test that non-matching requests are not redirected."""
        assert decide(path, authenticated).redirect_to is None


class TestAuthGateMiddleware:
    """Tests for the gate running in front of the real application."""

    def test_anonymous_dashboard_redirects(self, client: TestClient):
        """Test that /dashboard without a cookie answers 307 to /auth/login."""
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "/auth/login"

    def test_anonymous_project_page_redirects(self, client: TestClient):
        """Test that project pages are protected as well."""
        response = client.get("/projects/0b7c2f7e-6a53-4d8e-9d5a-2f1a3c4b5d6e", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "/auth/login"

    def test_signed_in_login_page_redirects_to_dashboard(self, client: TestClient):
        """Test that a signed-in caller visiting /auth/login lands on /dashboard."""
        register(client)
        response = client.get("/auth/login", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "/dashboard"

    def test_signed_in_dashboard_is_served(self, client: TestClient):
        """Test that the dashboard is rendered for a signed-in caller."""
        register(client)
        response = client.get("/dashboard")
        assert response.status_code == 200
        assert response.json() == {"email": "alice@example.com", "projects": [], "areas": []}

    def test_anonymous_login_page_is_served(self, client: TestClient):
        """Test that the public login entry point is reachable without a session."""
        response = client.get("/auth/login")
        assert response.status_code == 200
        assert response.json() == {"view": "login"}

    def test_invalid_cookie_is_cleared(self, client: TestClient):
        """Test that an unknown session cookie is removed on the response."""
        client.cookies.set(AUTH_COOKIE, "not-a-session")
        response = client.get("/auth/login")
        assert response.status_code == 200
        cleared = auth_cookie_headers(response)
        assert len(cleared) == 1
        assert "Max-Age=0" in cleared[0]

    def test_bearer_token_opens_protected_pages(self, client: TestClient):
        """Test that a Bearer client with a valid token reaches the dashboard."""
        token = register(client)["token"]
        client.cookies.clear()

        response = client.get("/dashboard", headers={"Authorization": f"Bearer {token}"}, follow_redirects=False)

        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"

    def test_invalid_bearer_token_redirects_without_touching_cookies(self, client: TestClient):
        """Test that an unknown Bearer token is unauthenticated and no cookie is cleared."""
        response = client.get("/dashboard", headers={"Authorization": "Bearer nope"}, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/login"
        assert auth_cookie_headers(response) == []

    def test_session_store_failure_fails_closed(self, client: TestClient, database):
        """Test that an unreachable session store means unauthenticated, not a 500."""
        register(client)
        database.get_collection("sessions").fail = True

        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "/auth/login"
        # The cookie may still be valid once the store recovers
        assert auth_cookie_headers(response) == []

    def test_session_store_failure_on_public_path_passes_through(self, client: TestClient, database):
        """Test that public pages stay reachable while the session store is down."""
        register(client)
        database.get_collection("sessions").fail = True

        response = client.get("/auth/login", follow_redirects=False)
        assert response.status_code == 200


class TestSessionRotation:
    """Tests for cookie rotation performed by the gate."""

    @pytest.fixture
    def config(self, config):
        config.session_refresh_interval_minutes = 0
        return config

    def test_due_session_is_rotated_on_response(self, client: TestClient):
        """Test that a session due for refresh gets a new cookie before handlers run."""
        token = register(client)["token"]

        response = client.get("/dashboard")
        assert response.status_code == 200
        rotated = auth_cookie_headers(response)
        assert len(rotated) == 1
        new_token = rotated[0].split(";", 1)[0].split("=", 1)[1]
        assert new_token != token
        assert client.cookies.get(AUTH_COOKIE) == new_token

    def test_rotated_cookie_is_set_on_redirects(self, client: TestClient):
        """Test that the refreshed cookie travels on a redirect response as well."""
        register(client)
        response = client.get("/auth/login", follow_redirects=False)
        assert response.status_code == 307
        assert len(auth_cookie_headers(response)) == 1

    def test_previous_token_honored_within_grace_window(self, client: TestClient, fastapi_app):
        """Test that a request racing a rotation with the old cookie is not signed out."""
        token = register(client)["token"]
        client.get("/dashboard")

        with TestClient(fastapi_app) as other:
            other.cookies.set(AUTH_COOKIE, token)
            response = other.get("/dashboard", follow_redirects=False)
        assert response.status_code == 200

    def test_bearer_session_is_not_rotated(self, client: TestClient, database):
        """Test that a due session presented as a Bearer token keeps its token."""
        token = register(client)["token"]
        client.cookies.clear()

        response = client.get("/dashboard", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert auth_cookie_headers(response) == []
        assert database.get_collection("sessions").docs[0]["auth_token"] == token

    def test_rotated_token_works_for_api_calls(self, client: TestClient):
        """Test that handlers in the rotating request use the new token."""
        register(client)
        response = client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"
