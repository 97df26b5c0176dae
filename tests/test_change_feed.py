import asyncio
import threading

import httpx
import pytest

from civicdesk.main import app
from civicdesk.models.enums import BUILDINGS_TABLE, ISSUES_TABLE, ChangeType
from civicdesk.services.change_feed import ChangeFeedRegistry, change_feed


@pytest.mark.anyio
async def test_publish_reaches_every_subscriber_of_the_table():
    registry = ChangeFeedRegistry()
    first = registry.subscribe(ISSUES_TABLE)
    second = registry.subscribe(ISSUES_TABLE)
    other = registry.subscribe(BUILDINGS_TABLE)
    assert registry.subscriber_count(ISSUES_TABLE) == 2

    registry.publish(ISSUES_TABLE, ChangeType.UPDATE, 7)

    expected = {'table': ISSUES_TABLE, 'event': 'UPDATE', 'id': 7}
    assert await asyncio.wait_for(first.queue.get(), 1) == expected
    assert await asyncio.wait_for(second.queue.get(), 1) == expected
    assert other.queue.empty()


@pytest.mark.anyio
async def test_unsubscribe_and_close():
    registry = ChangeFeedRegistry()
    kept = registry.subscribe(ISSUES_TABLE)
    dropped = registry.subscribe(ISSUES_TABLE)
    registry.unsubscribe(dropped)

    registry.publish(ISSUES_TABLE, ChangeType.DELETE, 3)
    assert (await asyncio.wait_for(kept.queue.get(), 1))['event'] == 'DELETE'
    assert dropped.queue.empty()

    registry.close(ISSUES_TABLE)
    assert await asyncio.wait_for(kept.queue.get(), 1) is None
    assert registry.subscriber_count(ISSUES_TABLE) == 0


@pytest.mark.anyio
async def test_publish_from_worker_thread():
    registry = ChangeFeedRegistry()
    subscription = registry.subscribe(BUILDINGS_TABLE)

    worker = threading.Thread(target=registry.publish, args=(BUILDINGS_TABLE, ChangeType.INSERT, 'abc'))
    worker.start()
    worker.join()

    item = await asyncio.wait_for(subscription.queue.get(), 1)
    assert item == {'table': BUILDINGS_TABLE, 'event': 'INSERT', 'id': 'abc'}


@pytest.mark.anyio
async def test_report_writes_publish_changes(make_user):
    _, headers = make_user()
    subscription = change_feed.subscribe(ISSUES_TABLE)
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url='http://testserver/api/v1') as client:
            response = await client.post(
                '/issues',
                json={'title': 'Broken bench', 'description': 'Split seat', 'category': 'parks'},
                headers=headers,
            )
            assert response.status_code == 201
            item = await asyncio.wait_for(subscription.queue.get(), 2)
    finally:
        change_feed.unsubscribe(subscription)

    assert item == {'table': ISSUES_TABLE, 'event': 'INSERT', 'id': response.json()['id']}


def test_realtime_rejects_unknown_table(client):
    assert client.get('/api/v1/realtime/users').status_code == 404
