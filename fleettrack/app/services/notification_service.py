"""
Live vehicle update fan-out.

Subscribers (WebSocket connections) receive the full vehicle list after every
mutating ingestion or simulation tick. Publishing never blocks the ingestion
path: a subscriber that falls behind loses its oldest pending snapshot.
"""

import asyncio
import itertools
import logging
from typing import Dict, List, Sequence

from fleettrack.app.schemas.vehicle import VehicleResponse

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 16


class Subscription:
    """Handle returned by ``subscribe``; pass it back to unsubscribe."""

    def __init__(self, subscription_id: int, registry: "VehicleUpdateRegistry", maxsize: int):
        self.id = subscription_id
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0
        self._registry = registry

    def offer(self, vehicles: List[VehicleResponse]) -> None:
        """Enqueue without blocking, evicting the oldest snapshot when full."""
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(vehicles)

    async def get(self) -> List[VehicleResponse]:
        return await self.queue.get()

    def close(self) -> None:
        self._registry.unsubscribe(self)


class VehicleUpdateRegistry:
    """
    Explicit subscriber registry owned by the ingestion component.

    Single event loop; no locking needed.
    """

    def __init__(self, default_maxsize: int = DEFAULT_QUEUE_SIZE):
        self._default_maxsize = default_maxsize
        self._subscriptions: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, maxsize: int = None) -> Subscription:
        subscription = Subscription(next(self._ids), self, maxsize or self._default_maxsize)
        self._subscriptions[subscription.id] = subscription
        logger.info("Subscriber %s connected (%d active)", subscription.id, self.subscriber_count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.closed = True
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.info("Subscriber %s disconnected (%d active)", subscription.id, self.subscriber_count)

    def publish(self, vehicles: Sequence[VehicleResponse]) -> int:
        """Deliver a snapshot to every open subscription; returns the delivery count."""
        snapshot = list(vehicles)
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            if subscription.closed:
                self._subscriptions.pop(subscription.id, None)
                continue
            subscription.offer(snapshot)
            delivered += 1
        return delivered

    def close_all(self) -> None:
        for subscription in list(self._subscriptions.values()):
            self.unsubscribe(subscription)
