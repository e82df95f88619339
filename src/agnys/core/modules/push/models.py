from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from agnys.core.db import MongoModel
from agnys.utils import now


class PushSubscription(MongoModel):
    """Browser push subscription. Unique per (user_id, endpoint)."""

    user_id: UUID
    endpoint: str
    p256dh: str
    auth: str
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    def subscription_info(self) -> dict[str, Any]:
        """Subscription in the Web Push wire format."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


class NotificationPayload(BaseModel):
    """Payload delivered to the service worker."""

    title: str
    body: str
    icon: str = "/icons/icon-192x192.png"
    badge: str = "/icons/badge-72x72.png"
    tag: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class DeliveryResult(StrEnum):
    DELIVERED = "delivered"
    GONE = "gone"  # Subscription expired or was revoked; the record should be deleted
    ERROR = "error"


class SendReport(BaseModel):
    success: bool = True
    sent: int = Field(0, description="Notifications accepted by the push service")
    removed: int = Field(0, description="Stale subscriptions deleted")
    failed: int = Field(0, description="Deliveries that failed for other reasons")
