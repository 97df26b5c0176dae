from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Optional, Union

from loguru import logger

from civicdesk.models.enums import ChangeType

ChangePayload = dict[str, Union[str, int, None]]


@dataclass(eq=False)
class Subscription:
    table: str
    queue: asyncio.Queue[Optional[ChangePayload]]
    loop: asyncio.AbstractEventLoop


@dataclass
class TableFeed:
    table: str
    subscribers: set[Subscription] = field(default_factory=set)


class ChangeFeedRegistry:
    """Fan-out of row change events to every open subscription on a table.

    Publishers may run on worker threads (sync route handlers), so delivery goes
    through each subscriber's own event loop.
    """

    def __init__(self) -> None:
        self._feeds: dict[str, TableFeed] = {}
        self._lock = threading.Lock()

    def subscribe(self, table: str) -> Subscription:
        subscription = Subscription(table=table, queue=asyncio.Queue(), loop=asyncio.get_running_loop())
        with self._lock:
            feed = self._feeds.setdefault(table, TableFeed(table=table))
            feed.subscribers.add(subscription)
        logger.debug('change_feed.subscribe', table=table)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            feed = self._feeds.get(subscription.table)
            if feed:
                feed.subscribers.discard(subscription)

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            feed = self._feeds.get(table)
            return len(feed.subscribers) if feed else 0

    def publish(self, table: str, change: ChangeType, row_id: Union[str, int, None]) -> None:
        payload: ChangePayload = {'table': table, 'event': change.value, 'id': row_id}
        with self._lock:
            feed = self._feeds.get(table)
            subscribers = list(feed.subscribers) if feed else []
        for subscription in subscribers:
            _deliver(subscription, payload)
        logger.debug('change_feed.publish', table=table, change=change.value, row_id=row_id, subscribers=len(subscribers))

    def close(self, table: str) -> None:
        with self._lock:
            feed = self._feeds.pop(table, None)
        if not feed:
            return
        for subscription in feed.subscribers:
            _deliver(subscription, None)


def _deliver(subscription: Subscription, payload: Optional[ChangePayload]) -> None:
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None
    if running is subscription.loop:
        subscription.queue.put_nowait(payload)
        return
    try:
        subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, payload)
    except RuntimeError:
        # Subscriber loop already closed; its stream is gone.
        logger.debug('change_feed.stale_subscriber', table=subscription.table)


change_feed = ChangeFeedRegistry()
