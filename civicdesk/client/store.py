from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any, Optional

import httpx
from loguru import logger

from civicdesk.models.enums import BUILDINGS_TABLE, ISSUES_TABLE


class RemoteStoreError(Exception):
    """A read or subscription against the remote tables failed."""


class RemoteStore(ABC):
    """Row access and change notifications for the report tables."""

    @abstractmethod
    async def select_all(self, table: str) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def changes(self, table: str) -> AsyncIterator[dict[str, Any]]:
        """Yield ``{"type": "subscribed"}`` once the channel is open, then one
        ``{"type": "change", ...}`` event per insert/update/delete on ``table``.

        Change events are triggers only; consumers re-read through ``select_all``.
        The iterator raises ``RemoteStoreError`` or simply ends when the
        channel drops.
        """


def build_client(base_url: str, token: Optional[str] = None, timeout: float = 10.0) -> httpx.AsyncClient:
    headers = {'Accept': 'application/json'}
    if token:
        headers['Authorization'] = f"Bearer {token}"
    return httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)


class HttpRemoteStore(RemoteStore):
    TABLE_PATHS = {
        ISSUES_TABLE: '/issues',
        BUILDINGS_TABLE: '/buildings',
    }

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def connect(cls, base_url: str, token: Optional[str] = None) -> 'HttpRemoteStore':
        return cls(build_client(base_url, token))

    def _path(self, table: str) -> str:
        try:
            return self.TABLE_PATHS[table]
        except KeyError:
            raise RemoteStoreError(f"Unknown table: {table}") from None

    async def select_all(self, table: str) -> list[dict[str, Any]]:
        path = self._path(table)
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"select {table} failed: {exc}") from exc
        payload = response.json()
        if not isinstance(payload, list):
            raise RemoteStoreError(f"select {table} returned {type(payload).__name__}, expected a list")
        return payload

    async def changes(self, table: str) -> AsyncIterator[dict[str, Any]]:
        self._path(table)
        try:
            async with self._client.stream(
                'GET',
                f"/realtime/{table}",
                headers={'Accept': 'text/event-stream'},
                timeout=httpx.Timeout(10.0, read=None),
            ) as response:
                if response.status_code != 200:
                    raise RemoteStoreError(f"subscribe {table} failed with HTTP {response.status_code}")
                async for line in response.aiter_lines():
                    event = _parse_sse_line(line)
                    if event is None or event.get('type') not in ('subscribed', 'change'):
                        continue
                    yield event
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"subscribe {table} dropped: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def _parse_sse_line(line: str) -> Optional[dict[str, Any]]:
    if not line.startswith('data:'):
        return None
    data = line[len('data:'):].strip()
    if not data:
        return None
    try:
        event = json.loads(data)
    except json.JSONDecodeError:
        logger.warning('remote_store.bad_event', data=data[:200])
        return None
    return event if isinstance(event, dict) else None
