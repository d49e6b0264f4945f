"""
VitaBalance API - Entitlement Change Notifications.

In-process observer for "this user's entitlement changed" events. The
webhook reconciler publishes; confirmation pollers wait on a ChangeFeed,
which is either a plain timer or a channel subscription that wakes early
when an event arrives and otherwise behaves like the timer.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)


class EntitlementNotifier:
    """
    Per-user fan-out of entitlement change events.

    Subscribers get an unbounded asyncio.Queue; publishing never blocks.
    """

    def __init__(self):
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}

    def subscribe(self, user_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.setdefault(user_id, set()).add(queue)
        return queue

    def unsubscribe(self, user_id: str, queue: asyncio.Queue) -> None:
        queues = self._subscribers.get(user_id)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[user_id]

    def publish(self, user_id: str, event: Optional[Dict[str, Any]] = None) -> int:
        """
        Deliver an event to every subscriber of ``user_id``.

        Returns:
            int: Number of subscribers notified.
        """
        queues = list(self._subscribers.get(user_id, ()))
        for queue in queues:
            queue.put_nowait(event or {"type": "entitlement_changed", "user_id": user_id})
        if queues:
            logger.info(f"Entitlement change for user {user_id} delivered to {len(queues)} subscriber(s)")
        return len(queues)

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, ()))


class ChangeFeed(ABC):
    """Tells a poller when to re-check."""

    @abstractmethod
    async def wait(self) -> None:
        """Return when the next check is due."""

    def close(self) -> None:
        """Release any subscription held by the feed."""


class TimerFeed(ChangeFeed):
    """Fixed-interval feed."""

    def __init__(
        self,
        interval: float,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.interval = interval
        self._sleep = sleep or asyncio.sleep

    async def wait(self) -> None:
        await self._sleep(self.interval)


class ChannelFeed(ChangeFeed):
    """
    Push feed backed by an EntitlementNotifier subscription.

    Wakes as soon as an event for the user is published, or after
    ``interval`` seconds when nothing arrives.
    """

    def __init__(self, notifier: EntitlementNotifier, user_id: str, interval: float):
        self.notifier = notifier
        self.user_id = user_id
        self.interval = interval
        self._queue = notifier.subscribe(user_id)

    async def wait(self) -> None:
        try:
            await asyncio.wait_for(self._queue.get(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass

    def close(self) -> None:
        self.notifier.unsubscribe(self.user_id, self._queue)
