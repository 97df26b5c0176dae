"""In-memory, realtime-synchronized view of one report table.

A ``CollectionSynchronizer`` owns the ordered list of rows for a single table.
It is refreshed by full refetches, patched locally for optimistic updates, and
kept eventually consistent by a change subscription whose notifications are
debounced into refetches.

All mutation happens on the event loop thread; no locking is used.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from civicdesk.client.normalize import normalize_row
from civicdesk.client.store import RemoteStore
from civicdesk.core.config import settings
from civicdesk.models.enums import BUILDINGS_TABLE, ISSUES_TABLE

Row = dict[str, Any]
Listener = Callable[[list[Row]], None]


@dataclass(frozen=True)
class TableConfig:
    table: str
    normalizer: Optional[Callable[[Row], Row]] = None
    order_by: str = 'created_at'

    def normalize(self, row: Row) -> Row:
        if self.normalizer is not None:
            return self.normalizer(row)
        return normalize_row(row, self.table)

    @classmethod
    def issues(cls) -> 'TableConfig':
        return cls(table=ISSUES_TABLE)

    @classmethod
    def buildings(cls) -> 'TableConfig':
        return cls(table=BUILDINGS_TABLE)


class CollectionSynchronizer:
    def __init__(
        self,
        store: RemoteStore,
        config: TableConfig,
        *,
        debounce_seconds: Optional[float] = None,
        reconnect_initial_seconds: Optional[float] = None,
        reconnect_max_seconds: Optional[float] = None,
    ) -> None:
        self._store = store
        self.config = config
        self.debounce_seconds = (
            settings.SYNC_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.reconnect_initial_seconds = (
            settings.SYNC_RECONNECT_INITIAL_SECONDS
            if reconnect_initial_seconds is None
            else reconnect_initial_seconds
        )
        self.reconnect_max_seconds = (
            settings.SYNC_RECONNECT_MAX_SECONDS if reconnect_max_seconds is None else reconnect_max_seconds
        )
        self._items: list[Row] = []
        self._listeners: list[Listener] = []
        # Single slot: at most one debounced refetch is ever scheduled.
        self._pending_refetch: Optional[asyncio.TimerHandle] = None
        self._background: set[asyncio.Task[bool]] = set()
        self._subscription: Optional[asyncio.Task[None]] = None
        self.loading = False
        self.last_error: Optional[BaseException] = None
        self.refetch_count = 0
        self.reconnect_count = 0

    @property
    def table(self) -> str:
        return self.config.table

    @property
    def items(self) -> list[Row]:
        return list(self._items)

    @property
    def ids(self) -> list[Any]:
        return [item.get('id') for item in self._items]

    @property
    def has_pending_refetch(self) -> bool:
        return self._pending_refetch is not None

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.done()

    def get(self, entity_id: Any) -> Optional[Row]:
        for item in self._items:
            if item.get('id') == entity_id:
                return dict(item)
        return None

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _emit(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                logger.exception('sync.listener_failed', table=self.table)

    async def refetch(self) -> bool:
        """Replace the collection with a fresh, normalized read of the table.

        A failed read is logged and leaves the last known-good rows in place.
        """
        self.loading = True
        try:
            rows = await self._store.select_all(self.table)
            order_by = self.config.order_by
            rows = sorted(rows, key=lambda row: str(row.get(order_by) or ''), reverse=True)
            normalized = [self.config.normalize(row) for row in rows]
        except asyncio.CancelledError:
            raise
        except Exception as error:  # noqa: BLE001
            self.last_error = error
            logger.warning('sync.refetch_failed', table=self.table, error=str(error), kept=len(self._items))
            return False
        finally:
            self.loading = False
        self.last_error = None
        self.refetch_count += 1
        self._items = normalized
        logger.debug('sync.refetched', table=self.table, rows=len(normalized))
        self._emit()
        return True

    def apply_patch(self, entity_id: Any, fields: Row) -> bool:
        """Merge ``fields`` into the row with ``entity_id``; no-op when absent."""
        changes = {key: value for key, value in fields.items() if key != 'id'}
        for index, item in enumerate(self._items):
            if item.get('id') == entity_id:
                self._items[index] = {**item, **changes}
                self._emit()
                return True
        return False

    def discard_fields(self, entity_id: Any, keys: Iterable[str]) -> bool:
        """Drop ``keys`` from the row with ``entity_id``; no-op when absent."""
        dropped = set(keys) - {'id'}
        for index, item in enumerate(self._items):
            if item.get('id') == entity_id:
                if dropped & item.keys():
                    self._items[index] = {key: value for key, value in item.items() if key not in dropped}
                    self._emit()
                return True
        return False

    def remove(self, entity_id: Any) -> bool:
        for index, item in enumerate(self._items):
            if item.get('id') == entity_id:
                del self._items[index]
                self._emit()
                return True
        return False

    def schedule_refetch(self) -> asyncio.Task[bool]:
        """Start a background refetch without waiting for it."""
        task = asyncio.get_running_loop().create_task(self.refetch())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def notify(self, event: Optional[Row] = None) -> None:
        """Debounce a change notification into a trailing-edge refetch."""
        if self._pending_refetch is not None:
            self._pending_refetch.cancel()
        loop = asyncio.get_running_loop()
        self._pending_refetch = loop.call_later(self.debounce_seconds, self._fire_pending_refetch)
        logger.debug('sync.change_received', table=self.table, event=event)

    def _fire_pending_refetch(self) -> None:
        self._pending_refetch = None
        self.schedule_refetch()

    def cancel_pending_refetch(self) -> None:
        if self._pending_refetch is not None:
            self._pending_refetch.cancel()
            self._pending_refetch = None

    async def start(self) -> None:
        if self._subscription is not None:
            return
        await self.refetch()
        self._subscription = asyncio.get_running_loop().create_task(self._watch())

    async def _watch(self) -> None:
        delay = self.reconnect_initial_seconds
        reconnecting = False
        while True:
            try:
                async for event in self._store.changes(self.table):
                    if event.get('type') == 'subscribed':
                        delay = self.reconnect_initial_seconds
                        if reconnecting:
                            reconnecting = False
                            logger.info('sync.resubscribed', table=self.table)
                            self.schedule_refetch()
                        continue
                    self.notify(event)
                logger.warning('sync.subscription_closed', table=self.table)
            except asyncio.CancelledError:
                raise
            except Exception as error:  # noqa: BLE001
                logger.warning('sync.subscription_failed', table=self.table, error=str(error))
            reconnecting = True
            self.reconnect_count += 1
            await asyncio.sleep(delay)
            delay = min(delay * 2, self.reconnect_max_seconds)

    async def teardown(self) -> None:
        self.cancel_pending_refetch()
        tasks: list[asyncio.Task] = list(self._background)
        if self._subscription is not None:
            tasks.append(self._subscription)
            self._subscription = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()

    async def __aenter__(self) -> 'CollectionSynchronizer':
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.teardown()
