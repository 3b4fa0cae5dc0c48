"""In-process message bus connecting extraction agents with waiting requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class ExtractionMessage:
    """Completion message sent by an extraction agent for one request."""

    request_id: str
    page_id: str
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[ExtractionMessage], None]


class Subscription:
    """Handle for a registered listener; ``close`` removes it exactly once."""

    def __init__(self, bus: "MessageBus", listener: Listener) -> None:
        self._bus = bus
        self._listener = listener
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, message: ExtractionMessage) -> None:
        if not self._closed:
            self._listener(message)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._bus._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class MessageBus:
    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: Listener) -> Subscription:
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, message: ExtractionMessage) -> None:
        for subscription in list(self._subscriptions):
            try:
                subscription.deliver(message)
            except Exception:
                logger.exception("Listener failed for message %s", message.request_id)

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            logger.debug("Subscription already removed")
