import asyncio

import pytest

from civicdesk.client.synchronizer import CollectionSynchronizer, TableConfig
from civicdesk.models.enums import BUILDINGS_TABLE, ISSUES_TABLE

from fakes import FakeStore, wait_until

ISSUE_ROWS = [
    {'id': 1, 'title': 'old', 'status': 'reported', 'created_at': '2024-01-01T08:00:00'},
    {'id': 3, 'title': 'new', 'status': 'resolved', 'created_at': '2024-03-01T08:00:00'},
    {'id': 2, 'title': 'mid', 'status': 'in-progress', 'created_at': '2024-02-01T08:00:00'},
]


def _sync(store, config=None, **kwargs):
    kwargs.setdefault('debounce_seconds', 0.1)
    kwargs.setdefault('reconnect_initial_seconds', 0.01)
    kwargs.setdefault('reconnect_max_seconds', 0.05)
    return CollectionSynchronizer(store, config or TableConfig.issues(), **kwargs)


@pytest.mark.anyio
async def test_start_loads_sorted_normalized_rows():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    async with _sync(store) as sync:
        assert sync.ids == [3, 2, 1]
        assert [item['status'] for item in sync.items] == ['resolved', 'under_maintenance', 'pending']
        assert sync.is_subscribed
    assert not sync.is_subscribed


@pytest.mark.anyio
async def test_buildings_get_a_display_name():
    store = FakeStore({BUILDINGS_TABLE: [{'id': 'b1', 'title': None, 'status': 'Under Inspection', 'created_at': '1'}]})
    sync = _sync(store, TableConfig.buildings())
    await sync.refetch()
    assert sync.items == [
        {'id': 'b1', 'title': None, 'status': 'under_maintenance', 'created_at': '1', 'building_name': 'Unknown Building'}
    ]


@pytest.mark.anyio
async def test_patch_changes_fields_but_never_membership():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    sync = _sync(store)
    await sync.refetch()
    before = sync.ids

    assert sync.apply_patch(2, {'status': 'resolved', 'id': 99})
    assert sync.ids == before
    assert sync.get(2)['status'] == 'resolved'

    snapshot = sync.items
    assert not sync.apply_patch(404, {'status': 'resolved'})
    assert sync.items == snapshot


@pytest.mark.anyio
async def test_discard_fields_removes_keys_but_keeps_the_row():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    sync = _sync(store)
    await sync.refetch()
    sync.apply_patch(2, {'assigned_to': 'crew-1'})

    assert sync.discard_fields(2, ['assigned_to', 'id'])
    assert 'assigned_to' not in sync.get(2)
    assert sync.get(2)['id'] == 2
    assert not sync.discard_fields(404, ['assigned_to'])


@pytest.mark.anyio
async def test_listeners_see_every_change():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    sync = _sync(store)
    seen = []
    remove = sync.add_listener(lambda items: seen.append([item['id'] for item in items]))

    await sync.refetch()
    sync.remove(3)
    remove()
    sync.remove(2)

    assert seen == [[3, 2, 1], [2, 1]]


@pytest.mark.anyio
async def test_failed_refetch_keeps_last_good_rows():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    sync = _sync(store)
    await sync.refetch()

    store.fail_reads = True
    assert await sync.refetch() is False
    assert sync.ids == [3, 2, 1]
    assert sync.last_error is not None
    assert sync.refetch_count == 1


@pytest.mark.anyio
async def test_burst_of_changes_causes_one_refetch():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    async with _sync(store, debounce_seconds=0.2) as sync:
        await wait_until(lambda: len(store.channels) == 1)
        assert sync.refetch_count == 1

        for index in range(5):
            store.push({'type': 'change', 'event': 'UPDATE', 'id': index})
            await asyncio.sleep(0.02)
        assert sync.has_pending_refetch
        assert sync.refetch_count == 1

        await wait_until(lambda: sync.refetch_count == 2)
        await asyncio.sleep(0.3)
        assert sync.refetch_count == 2
        assert not sync.has_pending_refetch


@pytest.mark.anyio
async def test_change_after_quiet_period_refetches_new_rows():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    async with _sync(store) as sync:
        await wait_until(lambda: len(store.channels) == 1)
        store.tables[ISSUES_TABLE].append({'id': 4, 'status': 'pending', 'created_at': '2024-04-01T08:00:00'})
        store.push({'type': 'change', 'event': 'INSERT', 'id': 4})
        await wait_until(lambda: sync.ids[:1] == [4])


@pytest.mark.anyio
async def test_teardown_cancels_pending_refetch():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    sync = _sync(store, debounce_seconds=0.1)
    await sync.start()
    sync.notify({'type': 'change'})
    assert sync.has_pending_refetch

    await sync.teardown()
    await asyncio.sleep(0.2)
    assert sync.refetch_count == 1
    assert not sync.has_pending_refetch
    assert not sync.is_subscribed


@pytest.mark.anyio
async def test_dropped_subscription_reconnects_and_refetches():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    async with _sync(store) as sync:
        await wait_until(lambda: len(store.channels) == 1)
        store.tables[ISSUES_TABLE] = store.tables[ISSUES_TABLE][:1]

        store.drop()
        await wait_until(lambda: len(store.channels) == 2)
        await wait_until(lambda: sync.ids == [1])
        assert sync.reconnect_count == 1
        assert sync.refetch_count == 2


@pytest.mark.anyio
async def test_patch_of_single_row_collection():
    store = FakeStore({ISSUES_TABLE: [{'id': 1, 'status': 'pending'}]})
    sync = _sync(store)
    await sync.refetch()

    sync.apply_patch(1, {'status': 'under_review'})

    assert sync.items == [{'id': 1, 'status': 'under_review'}]


@pytest.mark.anyio
async def test_refetch_fires_half_a_second_after_the_last_notification():
    store = FakeStore({ISSUES_TABLE: ISSUE_ROWS})
    sync = CollectionSynchronizer(store, TableConfig.issues())
    assert sync.debounce_seconds == 0.5
    await sync.refetch()

    sync.notify({'type': 'change'})
    await asyncio.sleep(0.1)
    sync.notify({'type': 'change'})

    await asyncio.sleep(0.4)
    assert sync.refetch_count == 1
    await asyncio.sleep(0.25)
    assert sync.refetch_count == 2
    await sync.teardown()
