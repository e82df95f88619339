from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.modules.user.models import User
from agnys.core.modules.user.validators import normalize_email, validate_password
from agnys.errors import ValidationError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages user accounts. Users are always read from the database, never cached."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        await self._collection.create_index([("email", 1)], unique=True)

    async def find_user(self, user_id: UUID) -> User | None:
        """Get user by ID, or None if the account no longer exists."""
        doc = await self._collection.find_one({"_id": user_id})
        return User.model_validate(doc) if doc is not None else None

    async def create_user(self, email: str, password: str) -> User:
        """Create user with hashed password."""
        email = normalize_email(email)
        if await self._collection.find_one({"email": email}) is not None:
            raise ValidationError(f"User '{email}' already exists")

        validate_password(password)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        user = User(email=email, password_hash=password_hash)
        await self._collection.insert_one(user.to_mongo())
        logger.info("user_registered", user_id=user.id)
        return user

    async def authenticate(self, email: str, password: str) -> User | None:
        """Return the user if the password matches, otherwise None."""
        doc = await self._collection.find_one({"email": email.strip().lower()})
        if doc is None:
            return None
        user = User.model_validate(doc)
        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            return None
        return user
