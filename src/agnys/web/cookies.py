"""Session cookie read/write helpers."""

from datetime import datetime

from starlette.requests import Request
from starlette.responses import Response

from agnys.config import Config
from agnys.utils import now

AUTH_COOKIE = "auth_token"


def read_auth_cookie(request: Request) -> str | None:
    return request.cookies.get(AUTH_COOKIE) or None


def set_auth_cookie(response: Response, token: str, expires_at: datetime, config: Config) -> None:
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=config.cookie_secure,
        max_age=max(int((expires_at - now()).total_seconds()), 0),
    )


def clear_auth_cookie(response: Response, config: Config) -> None:
    response.delete_cookie(AUTH_COOKIE, httponly=True, samesite="lax", secure=config.cookie_secure)


def sets_auth_cookie(response: Response) -> bool:
    """Whether the handler already wrote the session cookie (login/logout)."""
    return any(value.startswith(f"{AUTH_COOKIE}=") for value in response.headers.getlist("set-cookie"))
