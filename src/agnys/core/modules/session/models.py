"""Session management models."""

from dataclasses import dataclass
from datetime import datetime
from typing import NewType
from uuid import UUID

from pydantic import BaseModel, Field

from agnys.core.db import MongoModel
from agnys.utils import now

AuthToken = NewType("AuthToken", str)


class Session(MongoModel):
    """User authentication session.

    Indexed on auth_token (unique), previous_auth_token, user_id and expires_at (TTL).
    The token is rotated periodically; the previous token stays usable for a short
    grace window so that concurrent requests carrying the old cookie are not logged out.
    """

    user_id: UUID
    auth_token: str
    previous_auth_token: str | None = None
    created_at: datetime = Field(default_factory=now)
    refreshed_at: datetime = Field(default_factory=now)
    expires_at: datetime


class Identity(BaseModel):
    """Caller identity resolved from a valid session. Lives for one request only."""

    user_id: UUID
    email: str


@dataclass(frozen=True)
class SessionResolution:
    """Result of resolving a session token.

    auth_token is the token the caller should use from now on; rotated is True when it
    differs from the presented token and the cookie must be rewritten.
    """

    identity: Identity
    auth_token: AuthToken
    expires_at: datetime
    rotated: bool = False
