"""Minimal observer primitive shared by the server and the client library."""

from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class Subscription:
    """Handle returned by Channel.subscribe. Unsubscribing twice is a no-op."""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def unsubscribe(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


class Channel[T]:
    """Synchronous publish/subscribe channel.

    Listeners are called in subscription order. A failing listener is logged
    and does not prevent delivery to the remaining listeners.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: dict[int, Callable[[T], None]] = {}
        self._next_key = 0

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        key = self._next_key
        self._next_key += 1
        self._listeners[key] = listener
        return Subscription(lambda: self._listeners.pop(key, None))

    def publish(self, event: T) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(event)
            except Exception:
                logger.exception("channel_listener_failed", channel=self.name)

    def __len__(self) -> int:
        return len(self._listeners)
