import secrets
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.modules.session.models import AuthToken, Identity, Session, SessionResolution
from agnys.errors import AuthenticationError
from agnys.utils import now

logger = structlog.get_logger(__name__)

ROTATION_GRACE = timedelta(seconds=10)


def new_auth_token() -> AuthToken:
    return AuthToken(secrets.token_urlsafe(32))


class SessionService(Service):
    """Cookie-borne session store: creation, resolution with rotation, invalidation."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("auth_token", 1)], unique=True)
        await self._collection.create_index([("previous_auth_token", 1)])
        await self._collection.create_index([("user_id", 1)])
        # TTL index removes sessions once they expire
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.core.config.session_ttl_days)

    @property
    def refresh_interval(self) -> timedelta:
        return timedelta(minutes=self.core.config.session_refresh_interval_minutes)

    async def create_session(self, user_id: UUID) -> SessionResolution:
        user = await self.core.services.user.find_user(user_id)
        if user is None:
            raise AuthenticationError
        auth_token = new_auth_token()
        session = Session(user_id=user_id, auth_token=auth_token, expires_at=now() + self.ttl)
        await self._collection.insert_one(session.to_mongo())
        logger.debug("session_created", user_id=user_id)
        return SessionResolution(
            identity=Identity(user_id=user.id, email=user.email), auth_token=auth_token, expires_at=session.expires_at
        )

    async def resolve(self, auth_token: str, allow_rotation: bool = True) -> SessionResolution | None:
        """Resolve a presented token to an identity, rotating the token when it is due.

        Rotation is only allowed where the caller can hand the new token back (the cookie gate).

        Returns None for unknown, expired or stale tokens and for sessions whose user
        no longer exists. Database errors propagate to the caller.
        """
        current_time = now()
        doc = await self._collection.find_one(
            {"$or": [{"auth_token": auth_token}, {"previous_auth_token": auth_token}]}
        )
        if doc is None:
            return None
        session = Session.model_validate(doc)
        if session.expires_at <= current_time:
            return None

        if session.auth_token != auth_token:
            # Presented token was already rotated away by another request
            if current_time - session.refreshed_at > ROTATION_GRACE:
                return None
            return await self._resolution(session, rotated=True)

        if allow_rotation and current_time - session.refreshed_at >= self.refresh_interval:
            rotated = await self._rotate(session, current_time)
            if rotated is None:
                # A concurrent request rotated first; retry against the fresh document
                return await self.resolve(auth_token)
            return await self._resolution(rotated, rotated=True)

        return await self._resolution(session, rotated=False)

    async def _rotate(self, session: Session, current_time: datetime) -> Session | None:
        new_token = new_auth_token()
        doc = await self._collection.find_one_and_update(
            {"_id": session.id, "auth_token": session.auth_token},
            {
                "$set": {
                    "auth_token": new_token,
                    "previous_auth_token": session.auth_token,
                    "refreshed_at": current_time,
                    "expires_at": current_time + self.ttl,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        logger.debug("session_rotated", user_id=session.user_id)
        return Session.model_validate(doc)

    async def _resolution(self, session: Session, rotated: bool) -> SessionResolution | None:
        user = await self.core.services.user.find_user(session.user_id)
        if user is None:
            return None
        return SessionResolution(
            identity=Identity(user_id=user.id, email=user.email),
            auth_token=AuthToken(session.auth_token),
            expires_at=session.expires_at,
            rotated=rotated,
        )

    async def get_identity(self, auth_token: AuthToken) -> Identity:
        """Resolve a token to an identity or raise AuthenticationError."""
        resolution = await self.resolve(auth_token, allow_rotation=False)
        if resolution is None:
            raise AuthenticationError("Invalid or expired session")
        return resolution.identity

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Invalidate a session by removing it from the database."""
        await self._collection.delete_one({"$or": [{"auth_token": auth_token}, {"previous_auth_token": auth_token}]})
