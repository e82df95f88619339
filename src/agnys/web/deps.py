from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from agnys.app import App
from agnys.core.modules.session.models import AuthToken
from agnys.errors import AuthenticationError
from agnys.web.cookies import AUTH_COOKIE

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=AUTH_COOKIE, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_auth_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> AuthToken:
    """Get the caller's token from the Authorization Bearer header or the session cookie.

    The token is only extracted here; each App operation verifies it again. When the
    request gate rotated the cookie, the rotated token is used.
    """
    if credentials and credentials.scheme.lower() == "bearer":
        return AuthToken(credentials.credentials)

    rotated = getattr(request.state, "auth_token", None)
    if rotated:
        return AuthToken(rotated)

    if token_cookie:
        return AuthToken(token_cookie)

    raise AuthenticationError


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
