"""Async HTTP client for the Agnys API.

The session cookie is kept in the client's cookie jar, so a token rotated by the
server is picked up transparently; auth_events reports these transitions.
"""

from enum import StrEnum
from typing import Any
from uuid import UUID

import httpx
import structlog

from agnys.core.results import ActionResult
from agnys.events import Channel
from agnys.web.cookies import AUTH_COOKIE

logger = structlog.get_logger(__name__)


class AuthEvent(StrEnum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    TOKEN_REFRESHED = "token_refreshed"


class ApiError(Exception):
    """Non-success response that does not carry an action result."""

    def __init__(self, message: str, error_type: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code


def _set_cookie_values(response: httpx.Response) -> list[str]:
    values = []
    for header in response.headers.get_list("set-cookie"):
        name, _, rest = header.partition("=")
        if name.strip() == AUTH_COOKIE:
            values.append(rest.split(";", 1)[0].strip().strip('"'))
    return values


class ApiClient:
    def __init__(
        self, base_url: str, *, transport: httpx.AsyncBaseTransport | None = None, timeout: float = 30.0
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._signed_in = False
        self.auth_events: Channel[AuthEvent] = Channel("auth_events")

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def signed_in(self) -> bool:
        return self._signed_in

    # === Auth ===
    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Sign in; returns the identity of the signed-in user."""
        data = await self._json("POST", "/api/auth/login", json={"email": email, "password": password})
        return dict(data["user"])

    async def register(self, email: str, password: str) -> dict[str, Any]:
        data = await self._json("POST", "/api/auth/register", json={"email": email, "password": password})
        return dict(data["user"])

    async def logout(self) -> None:
        await self._send("POST", "/api/auth/logout")

    async def me(self) -> dict[str, Any]:
        return dict(await self._json("GET", "/api/auth/me"))

    async def create_project(self, name: str, description: str | None = None, color: str | None = None) -> dict[str, Any]:
        data = await self._json(
            "POST", "/api/projects/create", json={"name": name, "description": description, "color": color}
        )
        return dict(data["project"])

    # === Inline edits ===
    async def update_project_field(self, project_id: UUID, field: str, value: Any) -> ActionResult:
        return await self._action(f"/api/projects/{project_id}/fields", {"field": field, "value": value})

    async def update_task_field(self, task_id: UUID, field: str, value: Any) -> ActionResult:
        return await self._action(f"/api/tasks/{task_id}/fields", {"field": field, "value": value})

    async def update_note_details(self, note_id: UUID, title: str, content: str) -> ActionResult:
        return await self._action(f"/api/notes/{note_id}/details", {"title": title, "content": content})

    # === Plumbing ===
    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = await self._http.request(method, url, **kwargs)
        self._track_session(response)
        return response

    async def _json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._send(method, url, **kwargs)
        if response.is_error:
            raise self._error(response)
        return response.json()

    async def _action(self, url: str, payload: dict[str, Any]) -> ActionResult:
        response = await self._send("POST", url, json=payload)
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and "success" in body:
            return ActionResult.model_validate(body)
        raise self._error(response)

    def _track_session(self, response: httpx.Response) -> None:
        values = _set_cookie_values(response)
        if values:
            token = values[-1]
            if not token:
                self._mark_signed_out()
            elif self._signed_in:
                logger.debug("session_token_refreshed")
                self.auth_events.publish(AuthEvent.TOKEN_REFRESHED)
            else:
                self._signed_in = True
                self.auth_events.publish(AuthEvent.SIGNED_IN)
        elif response.status_code == 401:
            self._mark_signed_out()

    def _mark_signed_out(self) -> None:
        self._http.cookies.delete(AUTH_COOKIE)
        if self._signed_in:
            self._signed_in = False
            self.auth_events.publish(AuthEvent.SIGNED_OUT)

    @staticmethod
    def _error(response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return ApiError(body["message"], str(body.get("type") or "error"), response.status_code)
        return ApiError(f"HTTP {response.status_code}", "error", response.status_code)
