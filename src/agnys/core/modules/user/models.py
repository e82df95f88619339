from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from agnys.core.db import MongoModel
from agnys.utils import now


class User(MongoModel):
    """User domain model with credentials."""

    email: str
    password_hash: str  # bcrypt hash
    created_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, email=user.email)
