from typing import Any
from uuid import uuid4

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from agnys.core.core import Service
from agnys.core.modules.push.models import DeliveryResult, NotificationPayload, PushSubscription, SendReport
from agnys.core.modules.session.models import Identity
from agnys.errors import ValidationError
from agnys.utils import now

logger = structlog.get_logger(__name__)


class PushService(Service):
    """Stores push subscriptions and fans notifications out to them."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("push_subscriptions")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1), ("endpoint", 1)], unique=True)

    def get_public_key(self) -> str:
        return self.core.push_transport.public_key

    async def subscribe(self, identity: Identity, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
        """Register a subscription for the caller, refreshing the keys if it already exists.

        A single upsert on (user_id, endpoint), so concurrent subscribes of the same
        device converge on one record.
        """
        if not endpoint or not p256dh or not auth:
            raise ValidationError("Invalid subscription")

        current_time = now()
        doc = await self._collection.find_one_and_update(
            {"user_id": identity.user_id, "endpoint": endpoint},
            {
                "$set": {"p256dh": p256dh, "auth": auth, "updated_at": current_time},
                "$setOnInsert": {"_id": uuid4(), "created_at": current_time},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.debug("push_subscribed", user_id=identity.user_id)
        return PushSubscription.model_validate(doc)

    async def unsubscribe(self, identity: Identity, endpoint: str) -> None:
        await self._collection.delete_one({"user_id": identity.user_id, "endpoint": endpoint})

    async def send_to_user(self, identity: Identity, payload: NotificationPayload) -> SendReport:
        """Send a notification to every subscription of the caller.

        Subscriptions reported as gone are deleted. Other failures are counted but kept.
        """
        transport = self.core.push_transport
        subscriptions = await PushSubscription.list_cursor(self._collection.find({"user_id": identity.user_id}))

        report = SendReport()
        for subscription in subscriptions:
            result = await transport.send(subscription, payload)
            if result == DeliveryResult.DELIVERED:
                report.sent += 1
            elif result == DeliveryResult.GONE:
                await self._collection.delete_one({"_id": subscription.id, "user_id": identity.user_id})
                report.removed += 1
            else:
                report.failed += 1

        logger.info("push_fanout", user_id=identity.user_id, sent=report.sent, removed=report.removed, failed=report.failed)
        return report
