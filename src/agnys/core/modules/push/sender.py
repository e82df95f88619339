"""Web Push delivery via pywebpush."""

import asyncio
from typing import Protocol

import structlog
from pywebpush import WebPushException, webpush

from agnys.config import Config
from agnys.core.modules.push.models import DeliveryResult, NotificationPayload, PushSubscription
from agnys.errors import UpstreamServiceError

logger = structlog.get_logger(__name__)

GONE_STATUS_CODES = (404, 410)


class PushTransport(Protocol):
    public_key: str

    async def send(self, subscription: PushSubscription, payload: NotificationPayload) -> DeliveryResult: ...


class WebPushTransport:
    """Signs and sends notifications with the configured VAPID key pair."""

    def __init__(self, public_key: str, private_key: str, subject: str, timeout: float = 10.0) -> None:
        self.public_key = public_key
        self._private_key = private_key
        self._subject = subject
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: Config) -> "WebPushTransport":
        if not config.vapid_public_key or not config.vapid_private_key:
            raise UpstreamServiceError("Push notifications are not configured (AGNYS_VAPID_PUBLIC_KEY/PRIVATE_KEY)")
        return cls(config.vapid_public_key, config.vapid_private_key, config.vapid_subject)

    async def send(self, subscription: PushSubscription, payload: NotificationPayload) -> DeliveryResult:
        """Deliver one notification.

        Returns:
            DELIVERED on success, GONE when the push service reports the subscription
            no longer exists (HTTP 404/410), ERROR for any other failure.
        """
        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription.subscription_info(),
                data=payload.model_dump_json(exclude_none=True),
                vapid_private_key=self._private_key,
                vapid_claims={"sub": self._subject},
                timeout=self._timeout,
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code in GONE_STATUS_CODES:
                logger.info("push_subscription_gone", subscription_id=subscription.id, status_code=status_code)
                return DeliveryResult.GONE
            logger.warning("push_send_failed", subscription_id=subscription.id, status_code=status_code, error=str(e))
            return DeliveryResult.ERROR
        except Exception as e:
            logger.exception("push_send_error", subscription_id=subscription.id, error=str(e))
            return DeliveryResult.ERROR
        else:
            logger.debug("push_sent", subscription_id=subscription.id)
            return DeliveryResult.DELIVERED
