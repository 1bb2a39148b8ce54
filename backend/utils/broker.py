# backend/utils/broker.py
"""In-process topic publish/subscribe for real-time order updates.

Delivery is at-most-once and transient: a subscriber gets only what is
published while it is connected, and a full buffer drops the message instead
of blocking the publisher. ``publish`` may be called from any thread; each
subscription hands messages to its own event loop.
"""
import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Set, Tuple

logger = logging.getLogger(__name__)


def chef_topic(chef_id) -> str:
    return f"chef/{chef_id}/orders"

def user_topic(user_id) -> str:
    return f"user/{user_id}/orders"


class Subscription:
    def __init__(self, topics: Tuple[str, ...], loop: asyncio.AbstractEventLoop, maxsize: int):
        self.topics = topics
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._loop = loop
        self.dropped = 0

    def _offer(self, message: Any):
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Subscriber buffer full on %s, dropping message", ",".join(self.topics))

    def deliver(self, message: Any):
        self._loop.call_soon_threadsafe(self._offer, message)

    async def get(self) -> Any:
        return await self.queue.get()


class TopicBroker:
    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscriptions: Dict[str, Set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, *topics: str) -> Subscription:
        """Register a subscription bound to the running event loop."""
        subscription = Subscription(tuple(topics), asyncio.get_running_loop(), self.queue_size)
        with self._lock:
            for topic in topics:
                self._subscriptions[topic].add(subscription)
        logger.debug("Subscribed to %s", ", ".join(topics))
        return subscription

    def unsubscribe(self, subscription: Subscription):
        with self._lock:
            for topic in subscription.topics:
                subscribers = self._subscriptions.get(topic)
                if subscribers is None:
                    continue
                subscribers.discard(subscription)
                if not subscribers:
                    del self._subscriptions[topic]

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(topic, ()))

    def publish(self, topic: str, message: Any) -> int:
        """Hand ``message`` to every current subscriber of ``topic``.

        Returns the number of subscribers it was handed to. Never blocks on a
        slow subscriber.
        """
        with self._lock:
            subscribers = list(self._subscriptions.get(topic, ()))
        delivered = 0
        for subscription in subscribers:
            try:
                subscription.deliver(message)
                delivered += 1
            except RuntimeError:
                # Event loop of that subscriber is gone
                logger.info("Dropping subscriber of %s with a closed event loop", topic)
                self.unsubscribe(subscription)
        return delivered
