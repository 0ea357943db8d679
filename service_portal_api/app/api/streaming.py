"""
WebSocket delivery of live record feeds.

Each snapshot of a :class:`RecordFeed` is sent as a JSON frame
``{"type": "snapshot", "records": [...]}``.  When the client goes away
the feed is cancelled.  A terminated subscription is reported with an
``error`` frame and the socket is closed with code 1011; re-subscribing
is left to the client.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable

from fastapi import WebSocket, WebSocketDisconnect, status

from ..core.exceptions import StorageError, SubscriptionError
from ..services.record_service import RecordFeed

logger = logging.getLogger(__name__)


async def stream_feed(websocket: WebSocket, feed: RecordFeed) -> None:
    """Forward ``feed`` to an accepted ``websocket`` until either side stops."""

    async def watch_disconnect() -> None:
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            feed.cancel()

    watcher = asyncio.create_task(watch_disconnect())
    try:
        async for records in feed:
            await websocket.send_json(
                {
                    "type": "snapshot",
                    "records": [record.model_dump(mode="json", by_alias=True) for record in records],
                }
            )
    except SubscriptionError as exc:
        logger.error("Live feed terminated: %s", exc)
        await websocket.send_json({"type": "error", "detail": str(exc)})
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    except WebSocketDisconnect:
        pass
    finally:
        feed.cancel()
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await watcher


async def serve_feed(websocket: WebSocket, subscription: Awaitable[RecordFeed]) -> None:
    """Open ``subscription``, accept the socket and stream the feed.

    The handshake is refused with code 1011 if the subscription cannot
    be set up.
    """
    try:
        feed = await subscription
    except StorageError as exc:
        logger.error("Could not open live feed: %s", exc)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return
    await websocket.accept()
    await stream_feed(websocket, feed)
