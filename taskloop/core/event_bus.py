"""
Event Hub - in-memory publish/subscribe fan-out for progress events

Every subscriber gets its own bounded buffer. Broadcasting never waits: when
a subscriber's buffer is full the event is dropped for that subscriber only.
There is no replay; a subscriber only sees events broadcast after it
subscribed.

All operations are safe to call from any thread. Consumers await
``Subscription.get()`` on their own event loop and are woken through
``call_soon_threadsafe``.
"""

import asyncio
import threading
import uuid
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from taskloop.models import Event
from taskloop.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SUBSCRIBER_CAPACITY = 64


class Subscription:
    """A subscriber's receive buffer. Intended for a single consumer."""

    def __init__(self, capacity: int = DEFAULT_SUBSCRIBER_CAPACITY):
        self.subscription_id = str(uuid.uuid4())
        self.capacity = capacity
        self._buffer: Deque[Event] = deque()
        self._lock = threading.Lock()
        self._closed = False
        self._waiter: Optional[Tuple[asyncio.AbstractEventLoop, asyncio.Future]] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def offer(self, event: Event) -> bool:
        """Buffer *event* without blocking; False if full or closed."""
        with self._lock:
            if self._closed or len(self._buffer) >= self.capacity:
                return False
            self._buffer.append(event)
            waiter, self._waiter = self._waiter, None
        self._wake(waiter)
        return True

    def close(self) -> None:
        """Stop delivery; pending and future ``get()`` calls return None."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._buffer.clear()
            waiter, self._waiter = self._waiter, None
        self._wake(waiter)

    def get_nowait(self) -> Optional[Event]:
        with self._lock:
            if self._buffer:
                return self._buffer.popleft()
            return None

    async def get(self) -> Optional[Event]:
        """Wait for the next event; None once the subscription is closed."""
        while True:
            with self._lock:
                if self._buffer:
                    return self._buffer.popleft()
                if self._closed:
                    return None
                loop = asyncio.get_running_loop()
                future = loop.create_future()
                self._waiter = (loop, future)

            try:
                await future
            finally:
                with self._lock:
                    if self._waiter is not None and self._waiter[1] is future:
                        self._waiter = None

    def __aiter__(self):
        return self

    async def __anext__(self) -> Event:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    @staticmethod
    def _wake(waiter: Optional[Tuple[asyncio.AbstractEventLoop, asyncio.Future]]) -> None:
        if waiter is None:
            return
        loop, future = waiter

        def _resolve():
            if not future.done():
                future.set_result(None)

        try:
            loop.call_soon_threadsafe(_resolve)
        except RuntimeError:
            # consumer's loop already closed
            pass


class EventHub:
    """
    Fan-out broadcaster.

    Usage:
        hub = EventHub()
        sub = hub.subscribe()
        hub.broadcast(create_event(EventType.LOOP_STARTED, provider="claude"))
        event = await sub.get()
        hub.unsubscribe(sub)
    """

    def __init__(self, capacity: int = DEFAULT_SUBSCRIBER_CAPACITY):
        self.capacity = capacity
        self._subscribers: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        subscription = Subscription(self.capacity)
        with self._lock:
            self._subscribers[subscription.subscription_id] = subscription
        logger.debug(f"Subscriber {subscription.subscription_id} registered")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscribers.pop(subscription.subscription_id, None)
        subscription.close()
        logger.debug(f"Subscriber {subscription.subscription_id} removed")

    def broadcast(self, event: Event) -> int:
        """
        Deliver *event* to every registered subscriber.

        Returns:
            Number of subscribers that accepted the event
        """
        with self._lock:
            subscribers: List[Subscription] = list(self._subscribers.values())
        return sum(1 for subscription in subscribers if subscription.offer(event))

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
