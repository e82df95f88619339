"""Request gate: resolves the session token and protects page routes.

Runs before every route handler. The token comes from the Authorization Bearer
header or the session cookie. A cookie session due for refresh is rotated here so
that handlers always see a fresh token, and the new cookie is written onto the
outgoing response, redirects included. Bearer sessions are never rotated.
"""

from dataclasses import dataclass
from typing import cast

import structlog
from fastapi.security.utils import get_authorization_scheme_param
from pymongo.errors import PyMongoError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from agnys.app import App
from agnys.core.modules.session.models import SessionResolution
from agnys.web.cookies import clear_auth_cookie, read_auth_cookie, set_auth_cookie, sets_auth_cookie

logger = structlog.get_logger(__name__)

PROTECTED_PREFIXES = ("/dashboard", "/projects")
LOGIN_PATH = "/auth/login"
LANDING_PATH = "/dashboard"


@dataclass(frozen=True)
class GateDecision:
    redirect_to: str | None = None


def read_bearer_token(request: Request) -> str | None:
    scheme, credentials = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "bearer" or not credentials:
        return None
    return credentials


def decide(path: str, authenticated: bool) -> GateDecision:
    """Routing policy for a request path given whether the caller has a live session."""
    if not authenticated and path.startswith(PROTECTED_PREFIXES):
        return GateDecision(redirect_to=LOGIN_PATH)
    if authenticated and path.startswith(LOGIN_PATH):
        return GateDecision(redirect_to=LANDING_PATH)
    return GateDecision()


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Resolve the session cookie once per request and apply the routing policy."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        app = cast(App, request.app.state.app)
        bearer = read_bearer_token(request)
        token = bearer or read_auth_cookie(request)
        resolution: SessionResolution | None = None
        stale_cookie = False
        if token:
            try:
                # Bearer clients cannot receive a rotated token
                resolution = await app.resolve_session(token, allow_rotation=bearer is None)
            except PyMongoError as e:
                # Fail closed: an unreachable session store means no session, but keep the cookie
                logger.warning("session_store_unavailable", error=str(e))
            else:
                stale_cookie = resolution is None and bearer is None

        request.state.session = resolution
        if resolution is not None:
            # Handlers must use the rotated token, not the one the browser sent
            request.state.auth_token = resolution.auth_token

        decision = decide(request.url.path, authenticated=resolution is not None)
        if decision.redirect_to is not None:
            response: Response = RedirectResponse(decision.redirect_to, status_code=307)
        else:
            response = await call_next(request)

        if not sets_auth_cookie(response):
            if resolution is not None and resolution.rotated and bearer is None:
                set_auth_cookie(response, resolution.auth_token, resolution.expires_at, app.config)
            elif stale_cookie:
                clear_auth_cookie(response, app.config)
        return response
