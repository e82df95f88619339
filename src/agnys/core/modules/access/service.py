from typing import Any
from uuid import UUID

from pymongo.asynchronous.collection import AsyncCollection

from agnys.core.core import Service
from agnys.core.db import find_owned
from agnys.core.modules.session.models import AuthToken, Identity
from agnys.errors import NotFoundError


class AccessService(Service):
    """Per-operation identity re-verification and ownership checks."""

    async def ensure_authenticated(self, auth_token: AuthToken) -> Identity:
        """Re-resolve the caller's identity from the session store for this operation."""
        return await self.core.services.session.get_identity(auth_token)

    async def ensure_owned(
        self, collection: AsyncCollection[dict[str, Any]], resource_id: UUID, identity: Identity, label: str
    ) -> dict[str, Any]:
        """Fetch a resource scoped to the caller, raising NotFoundError when absent or foreign."""
        doc = await find_owned(collection, resource_id, identity.user_id)
        if doc is None:
            raise NotFoundError(f"{label} not found")
        return doc
