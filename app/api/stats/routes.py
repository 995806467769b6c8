import asyncio
import contextlib

from fastapi import APIRouter, Depends, Header, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from app.api.stats import schemas
from app.api.stats.aggregator import LiveAggregator, snapshot
from app.core.config import settings
from app.core.logger import logger
from app.core.store.base import RecordStore
from app.core.store.factory import get_store

router = APIRouter()


@router.get('/', response_model=schemas.DashboardStats)
async def get_stats(
    x_api_key: str = Header(...),
    store: RecordStore = Depends(get_store),
):
    if x_api_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail='Invalid API key')
    return await snapshot(store)


async def _forward_stats(websocket: WebSocket, updates: asyncio.Queue):
    while True:
        stats = await updates.get()
        await websocket.send_json(jsonable_encoder(stats))


@router.websocket('/live')
async def live_stats(
    websocket: WebSocket,
    api_key: str,
    store: RecordStore = Depends(get_store),
):
    """Push a DashboardStats message on connect and after every change."""
    if api_key != settings.ADMIN_API_KEY:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    updates: asyncio.Queue = asyncio.Queue()
    unsubscribe = await LiveAggregator(store).subscribe(updates.put_nowait)
    sender = asyncio.create_task(_forward_stats(websocket, updates))
    try:
        # Incoming messages are ignored; receiving is how a disconnect shows up
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info('Live stats client disconnected')
    finally:
        unsubscribe()
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
