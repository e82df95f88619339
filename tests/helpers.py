from typing import Any

from fastapi.testclient import TestClient

PASSWORD = "secret-pass"


def register(client: TestClient, email: str = "alice@example.com", password: str = PASSWORD) -> dict[str, Any]:
    """Register through the API; the client's cookie jar holds the new session."""
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def create_project(client: TestClient, name: str = "Website") -> dict[str, Any]:
    response = client.post("/api/projects/create", json={"name": name})
    assert response.status_code == 200, response.text
    return response.json()["project"]
