"""Employee and citizen mutations with optimistic local state.

Every status change follows the same protocol against a
``CollectionSynchronizer``:

1. snapshot the fields about to change and apply the new values locally,
2. send the request,
3. on success keep the local state and refetch in the background,
4. on failure restore the snapshot and post a user-visible notice.

Dismissals mark the row with ``pending_dismissal`` while the request is in
flight and never remove it before the server confirms them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Union

import httpx
from loguru import logger

from civicdesk.client.store import build_client
from civicdesk.client.synchronizer import CollectionSynchronizer, Row
from civicdesk.core.validation import parse_report_id, validate_status
from civicdesk.models.enums import IssueStatus, ReportKind

ReportId = Union[int, str]


@dataclass
class MutationResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    request_id: Optional[str] = None


@dataclass
class Notice:
    level: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NoticeBoard:
    """Messages meant for the person operating the client."""

    def __init__(self) -> None:
        self._notices: list[Notice] = []

    def post(self, level: str, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self._notices.append(notice)
        return notice

    def error(self, message: str) -> Notice:
        return self.post('error', message)

    def success(self, message: str) -> Notice:
        return self.post('success', message)

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    @property
    def errors(self) -> list[Notice]:
        return [notice for notice in self._notices if notice.level == 'error']

    @property
    def latest(self) -> Optional[Notice]:
        return self._notices[-1] if self._notices else None

    def clear(self) -> None:
        self._notices.clear()


class OptimisticUpdate:
    """Snapshot, apply, then either keep or restore a speculative patch.

    ``patch(entity_id, fields)`` applies fields to local state and
    ``snapshot(entity_id)`` returns the current entity (or ``None``).
    ``discard(entity_id, keys)`` drops keys the entity lacked before ``apply``;
    without it rollback sets them to ``None``.
    """

    def __init__(
        self,
        patch: Callable[[ReportId, Row], Any],
        snapshot: Callable[[ReportId], Optional[Row]],
        entity_id: ReportId,
        fields: Row,
        discard: Optional[Callable[[ReportId, Iterable[str]], Any]] = None,
    ) -> None:
        self._patch = patch
        self._snapshot = snapshot
        self._discard = discard
        self.entity_id = entity_id
        self.fields = dict(fields)
        self.previous: Optional[Row] = None
        self.absent: frozenset[str] = frozenset()
        self.applied = False
        self.settled = False

    @classmethod
    def for_synchronizer(cls, sync: CollectionSynchronizer, entity_id: ReportId, fields: Row) -> 'OptimisticUpdate':
        return cls(sync.apply_patch, sync.get, entity_id, fields, discard=sync.discard_fields)

    def apply(self) -> bool:
        current = self._snapshot(self.entity_id)
        if current is None:
            return False
        self.previous = {key: current[key] for key in self.fields if key in current}
        self.absent = frozenset(key for key in self.fields if key not in current)
        self._patch(self.entity_id, self.fields)
        self.applied = True
        return True

    def commit(self) -> None:
        self.settled = True

    def rollback(self) -> None:
        if self.applied and not self.settled and self.previous is not None:
            if self.previous:
                self._patch(self.entity_id, self.previous)
            if self.absent:
                if self._discard is not None:
                    self._discard(self.entity_id, self.absent)
                else:
                    self._patch(self.entity_id, {key: None for key in self.absent})
        self.settled = True


def _error_detail(body: Any, status_code: int) -> str:
    if isinstance(body, dict):
        detail = body.get('detail') or body.get('error')
        if isinstance(detail, str) and detail:
            return detail
        if isinstance(detail, list) and detail:
            first = detail[0]
            if isinstance(first, dict) and first.get('msg'):
                return str(first['msg'])
    return f"Request failed with HTTP {status_code}"


class ReportsApi:
    """HTTP client for the report mutation endpoints."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def connect(cls, base_url: str, token: Optional[str] = None) -> 'ReportsApi':
        return cls(build_client(base_url, token))

    async def _send(self, method: str, path: str, payload: Optional[dict] = None) -> MutationResult:
        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            logger.warning('reports_api.network_error', method=method, path=path, error=str(exc))
            return MutationResult(success=False, error=str(exc) or 'Network error')
        request_id = response.headers.get('X-Request-ID')
        try:
            body = response.json()
        except ValueError:
            body = None
        if response.is_success:
            return MutationResult(success=True, data=body, request_id=request_id)
        error = _error_detail(body, response.status_code)
        logger.info(
            'reports_api.rejected',
            method=method,
            path=path,
            status=response.status_code,
            error=error,
            request_id=request_id,
        )
        return MutationResult(success=False, data=body, error=error, request_id=request_id)

    async def create_issue(
        self,
        title: str,
        description: str,
        category: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        thumbnail: Optional[str] = None,
    ) -> MutationResult:
        return await self._send(
            'POST',
            '/issues',
            {
                'title': title,
                'description': description,
                'category': category,
                'latitude': latitude,
                'longitude': longitude,
                'thumbnail': thumbnail,
            },
        )

    async def create_building(
        self,
        title: str,
        description: str,
        assigned_to: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        thumbnail: Optional[str] = None,
    ) -> MutationResult:
        return await self._send(
            'POST',
            '/buildings',
            {
                'title': title,
                'description': description,
                'assigned_to': assigned_to,
                'latitude': latitude,
                'longitude': longitude,
                'thumbnail': thumbnail,
            },
        )

    async def update_status(
        self,
        kind: ReportKind,
        report_id: ReportId,
        status: str,
        assigned_to: Optional[str] = None,
    ) -> MutationResult:
        """Raises ``InvalidReportId`` / ``InvalidReportStatus`` before any I/O."""
        parsed_id = parse_report_id(kind, report_id)
        validate_status(kind, status)
        payload: dict[str, Any] = {'type': kind.value, 'id': parsed_id, 'status': status}
        if assigned_to is not None:
            payload['assigned_to'] = assigned_to
        return await self._send('POST', '/classify', payload)

    async def dismiss(self, kind: ReportKind, report_id: ReportId) -> MutationResult:
        parsed_id = parse_report_id(kind, report_id)
        return await self._send('POST', '/classify', {'type': kind.value, 'id': parsed_id, 'action': 'dismiss'})

    async def aclose(self) -> None:
        await self._client.aclose()


class MutationCaller:
    def __init__(
        self,
        api: ReportsApi,
        synchronizers: dict[ReportKind, CollectionSynchronizer],
        notices: Optional[NoticeBoard] = None,
    ) -> None:
        self._api = api
        self._synchronizers = synchronizers
        self.notices = notices or NoticeBoard()

    def _sync(self, kind: ReportKind) -> Optional[CollectionSynchronizer]:
        return self._synchronizers.get(kind)

    def _reject(self, message: str) -> MutationResult:
        self.notices.error(message)
        return MutationResult(success=False, error=message)

    async def change_status(
        self,
        kind: ReportKind,
        report_id: ReportId,
        status: str,
        assigned_to: Optional[str] = None,
    ) -> MutationResult:
        try:
            parsed_id = parse_report_id(kind, report_id)
            validate_status(kind, status)
        except ValueError as exc:
            return self._reject(str(exc))

        fields: Row = {'status': status}
        if assigned_to is not None:
            fields['assigned_to'] = assigned_to
        sync = self._sync(kind)
        update = OptimisticUpdate.for_synchronizer(sync, parsed_id, fields) if sync else None
        if update:
            update.apply()

        try:
            result = await self._api.update_status(kind, parsed_id, status, assigned_to)
        except Exception as exc:  # noqa: BLE001
            logger.exception('mutation.status_change_crashed', kind=kind.value, report_id=parsed_id)
            result = MutationResult(success=False, error=str(exc) or 'Unknown error')

        if result.success:
            if update:
                update.commit()
            if sync:
                sync.schedule_refetch()
            self.notices.success(f"{kind.value.capitalize()} marked as {status}")
            logger.info('mutation.status_changed', kind=kind.value, report_id=parsed_id, status=status)
            return result

        if update:
            update.rollback()
        self.notices.error(result.error or 'Failed to update status')
        logger.warning('mutation.status_change_failed', kind=kind.value, report_id=parsed_id, error=result.error)
        return result

    async def accept_issue(self, issue_id: ReportId) -> MutationResult:
        """Approve a newly reported issue so it becomes publicly visible."""
        return await self.change_status(ReportKind.ISSUE, issue_id, IssueStatus.PENDING_APPROVED.value)

    async def dismiss(self, kind: ReportKind, report_id: ReportId) -> MutationResult:
        try:
            parsed_id = parse_report_id(kind, report_id)
        except ValueError as exc:
            return self._reject(str(exc))

        sync = self._sync(kind)
        update = OptimisticUpdate.for_synchronizer(sync, parsed_id, {'pending_dismissal': True}) if sync else None
        if update:
            update.apply()

        try:
            result = await self._api.dismiss(kind, parsed_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception('mutation.dismiss_crashed', kind=kind.value, report_id=parsed_id)
            result = MutationResult(success=False, error=str(exc) or 'Unknown error')

        if not result.success:
            if update:
                update.rollback()
            self.notices.error(result.error or f"Failed to dismiss {kind.value}")
            logger.warning('mutation.dismiss_failed', kind=kind.value, report_id=parsed_id, error=result.error)
            return result

        if update:
            update.commit()
        if sync:
            sync.remove(parsed_id)
            sync.schedule_refetch()
        self.notices.success(f"{kind.value.capitalize()} has been dismissed")
        logger.info('mutation.dismissed', kind=kind.value, report_id=parsed_id)
        return result

    async def submit_issue(self, **fields: Any) -> MutationResult:
        return await self._submit(ReportKind.ISSUE, self._api.create_issue, fields)

    async def submit_building(self, **fields: Any) -> MutationResult:
        return await self._submit(ReportKind.BUILDING, self._api.create_building, fields)

    async def _submit(self, kind: ReportKind, send: Callable[..., Any], fields: dict) -> MutationResult:
        try:
            result = await send(**fields)
        except Exception as exc:  # noqa: BLE001
            logger.exception('mutation.submit_crashed', kind=kind.value)
            result = MutationResult(success=False, error=str(exc) or 'Unknown error')
        if not result.success:
            self.notices.error(result.error or f"Failed to submit {kind.value} report")
            return result
        sync = self._sync(kind)
        if sync:
            sync.schedule_refetch()
        self.notices.success(f"{kind.value.capitalize()} report submitted")
        return result
