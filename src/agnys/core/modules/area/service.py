from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.modules.area.models import Area
from agnys.core.modules.invalidation.models import ResourceKind
from agnys.core.modules.session.models import Identity
from agnys.errors import ValidationError

logger = structlog.get_logger(__name__)


class AreaService(Service):
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("areas")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("name", 1)])

    async def list_areas(self, identity: Identity) -> list[Area]:
        return await Area.list_cursor(self._collection.find({"user_id": identity.user_id}).sort("name", 1))

    async def create_area(self, identity: Identity, name: str, vision_statement: str | None = None) -> Area:
        name = name.strip()
        if not name:
            raise ValidationError("Area name is required")
        area = Area(user_id=identity.user_id, name=name, vision_statement=(vision_statement or "").strip() or None)
        await self._collection.insert_one(area.to_mongo())
        self.core.services.invalidation.invalidate(ResourceKind.AREA)
        logger.debug("area_created", area_id=area.id, user_id=identity.user_id)
        return area
