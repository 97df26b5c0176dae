import asyncio
import json
from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse
from civicdesk.core.config import settings
from civicdesk.models.enums import BUILDINGS_TABLE, ISSUES_TABLE
from civicdesk.services.change_feed import change_feed

router = APIRouter(prefix='/realtime', tags=['realtime'])

WATCHABLE_TABLES = {ISSUES_TABLE, BUILDINGS_TABLE}


@router.get('/{table}')
async def watch_table(table: str):
    if table not in WATCHABLE_TABLES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Unknown table')

    async def event_stream():
        subscription = change_feed.subscribe(table)
        try:
            yield f"data: {json.dumps({'type': 'subscribed', 'table': table})}\n\n"
            while True:
                try:
                    item = await asyncio.wait_for(
                        subscription.queue.get(),
                        timeout=settings.REALTIME_KEEPALIVE_SECONDS,
                    )
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                if item is None:
                    break
                yield f"data: {json.dumps({'type': 'change', **item})}\n\n"
        finally:
            change_feed.unsubscribe(subscription)

    return StreamingResponse(event_stream(), media_type='text/event-stream')
