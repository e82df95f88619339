from typing import Any, Self
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.cursor import AsyncCursor

from agnys.utils import now


class MongoModel(BaseModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage with _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")  # Rename id → _id for MongoDB
        return data

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list[Self]:
        """Iterate over an AsyncCursor and return a list of model instances."""
        return [cls.model_validate(item) async for item in cursor]


def owned(resource_id: UUID, user_id: UUID) -> dict[str, Any]:
    """Ownership predicate: matches the resource only if it belongs to user_id."""
    return {"_id": resource_id, "user_id": user_id}


async def find_owned(collection: AsyncCollection[dict[str, Any]], resource_id: UUID, user_id: UUID) -> dict[str, Any] | None:
    """Look up a resource by id, scoped to its owner in the same query."""
    return await collection.find_one(owned(resource_id, user_id))


async def update_owned(
    collection: AsyncCollection[dict[str, Any]], resource_id: UUID, user_id: UUID, changes: dict[str, Any]
) -> dict[str, Any] | None:
    """Apply changes to an owned resource in one atomic operation and return the new document.

    Stamps updated_at. Returns None when the resource is absent or owned by someone else,
    in which case nothing was written.
    """
    return await collection.find_one_and_update(
        owned(resource_id, user_id),
        {"$set": {**changes, "updated_at": now()}},
        return_document=ReturnDocument.AFTER,
    )


async def delete_owned(collection: AsyncCollection[dict[str, Any]], resource_id: UUID, user_id: UUID) -> dict[str, Any] | None:
    """Delete an owned resource and return the removed document, or None if nothing matched."""
    return await collection.find_one_and_delete(owned(resource_id, user_id))
