"""
FakeSO Backend — Real-Time WebSocket Endpoint
===============================================

What:  WS /ws/events, one subscription to the event bus per connection.
How:   The server only pushes. Anything the client sends is read and
       ignored, which doubles as a keep-alive and lets us notice a
       disconnect promptly.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from fakeso.services.event_bus import event_bus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

# Application-defined close code: server at subscriber capacity
CLOSE_TOO_MANY_CONNECTIONS = 4029


@router.websocket("/ws/events")
async def events(websocket: WebSocket) -> None:
    await websocket.accept()

    if not await event_bus.subscribe(websocket):
        await websocket.close(code=CLOSE_TOO_MANY_CONNECTIONS, reason="Too many connections")
        return

    logger.debug("Event subscriber connected (%d total)", event_bus.subscriber_count)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await event_bus.unsubscribe(websocket)
        logger.debug("Event subscriber disconnected (%d total)", event_bus.subscriber_count)
