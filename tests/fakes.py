import asyncio

from civicdesk.client.mutations import MutationResult
from civicdesk.client.store import RemoteStore, RemoteStoreError
from civicdesk.models.enums import BUILDINGS_TABLE, ISSUES_TABLE, ReportKind


class FakeStore(RemoteStore):
    """In-memory tables plus a scriptable change channel per subscription."""

    def __init__(self, tables=None):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.fail_reads = False
        self.select_count = 0
        self.channels = []

    async def select_all(self, table):
        self.select_count += 1
        if self.fail_reads:
            raise RemoteStoreError('store unavailable')
        return [dict(row) for row in self.tables.get(table, [])]

    async def changes(self, table):
        channel = asyncio.Queue()
        self.channels.append(channel)
        yield {'type': 'subscribed', 'table': table}
        while True:
            event = await channel.get()
            if event is None:
                return
            yield event

    def push(self, event):
        self.channels[-1].put_nowait(event)

    def drop(self):
        self.channels[-1].put_nowait(None)


class FakeReportsApi:
    """Records calls and answers with a preset result.

    With a ``store``, successful status changes and dismissals are written to
    its tables the way the server would, so refetches observe them.
    """

    def __init__(self, result=None, error=None, on_call=None, store=None):
        self.result = result or MutationResult(success=True, data={})
        self.error = error
        self.on_call = on_call
        self.store = store
        self.calls = []

    async def _answer(self, *call):
        self.calls.append(call)
        if self.on_call is not None:
            self.on_call(*call)
        if self.error is not None:
            raise self.error
        if self.result.success and self.store is not None:
            self._write(*call)
        return self.result

    def _write(self, action, *args):
        if action not in ('update_status', 'dismiss'):
            return
        kind, report_id = args[0], args[1]
        table = ISSUES_TABLE if kind == ReportKind.ISSUE else BUILDINGS_TABLE
        rows = self.store.tables.get(table, [])
        if action == 'dismiss':
            self.store.tables[table] = [row for row in rows if row.get('id') != report_id]
            return
        status, assigned_to = args[2], args[3]
        for row in rows:
            if row.get('id') == report_id:
                row['status'] = status
                if assigned_to is not None:
                    row['assigned_to'] = assigned_to

    async def update_status(self, kind, report_id, status, assigned_to=None):
        return await self._answer('update_status', kind, report_id, status, assigned_to)

    async def dismiss(self, kind, report_id):
        return await self._answer('dismiss', kind, report_id)

    async def create_issue(self, **fields):
        return await self._answer('create_issue', fields)

    async def create_building(self, **fields):
        return await self._answer('create_building', fields)


async def wait_until(predicate, timeout=2.0, interval=0.01):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError('condition not reached in time')
        await asyncio.sleep(interval)
