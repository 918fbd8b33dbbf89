"""
FakeSO Backend — Real-Time Event Bus
======================================

What:  In-process publish/subscribe hub that pushes mutation payloads to
       every connected WebSocket client.
Why:   Other users' pages (question lists, profile notifications) update
       live without polling.
Who:   Route handlers publish after a successful mutation; the /ws/events
       endpoint subscribes one client per connection.

Wire Format (one JSON text frame per event):
    {"type": "voteUpdate", "data": {"qid": "...", "upVotes": [...], "downVotes": [...]}}

Delivery:
    Fire-and-forget. Each send is bounded by a timeout; a subscriber that
    is too slow or whose socket is dead is dropped on the spot. Publishing
    never raises into the request that triggered it.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import WebSocket

from fakeso.config import settings
from fakeso.schemas.common import CamelModel

logger = logging.getLogger(__name__)

QUESTION_UPDATE = "questionUpdate"
ANSWER_UPDATE = "answerUpdate"
VIEWS_UPDATE = "viewsUpdate"
VOTE_UPDATE = "voteUpdate"
COMMENT_UPDATE = "commentUpdate"
USER_UPDATE = "userUpdate"
NOTIFICATION_UPDATE = "notificationUpdate"
REMOVE_FRIEND = "removeFriend"
ADD_FRIEND = "addFriend"
CLEAR_NOTIFICATION = "clearNotification"

EVENT_TYPES = (
    QUESTION_UPDATE,
    ANSWER_UPDATE,
    VIEWS_UPDATE,
    VOTE_UPDATE,
    COMMENT_UPDATE,
    USER_UPDATE,
    NOTIFICATION_UPDATE,
    REMOVE_FRIEND,
    ADD_FRIEND,
    CLEAR_NOTIFICATION,
)


class EventBus:
    """
    Broadcasts events to WebSocket subscribers.

    Usage:
        # in the WebSocket endpoint
        if not await event_bus.subscribe(websocket):
            ...  # at capacity
        ...
        await event_bus.unsubscribe(websocket)

        # in a route handler
        await event_bus.publish(VOTE_UPDATE, payload)
    """

    def __init__(
        self,
        max_subscribers: Optional[int] = None,
        send_timeout: Optional[float] = None,
    ) -> None:
        self.max_subscribers = max_subscribers or settings.event_bus_max_subscribers
        self.send_timeout = send_timeout or settings.event_bus_send_timeout
        self._subscribers: List[WebSocket] = []
        self._lock = asyncio.Lock()

    async def subscribe(self, ws: WebSocket) -> bool:
        """Register an accepted socket. Returns False when at capacity."""
        async with self._lock:
            if len(self._subscribers) >= self.max_subscribers:
                logger.warning("Event bus full (%d subscribers), rejecting client", self.max_subscribers)
                return False
            self._subscribers.append(ws)
            return True

    async def unsubscribe(self, ws: WebSocket) -> None:
        async with self._lock:
            if ws in self._subscribers:
                self._subscribers.remove(ws)

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """
        Send `message` to every subscriber.

        Returns the number of subscribers that received it. Slow or
        failing subscribers are removed.
        """
        delivered = 0
        async with self._lock:
            dropped: List[WebSocket] = []
            for ws in self._subscribers:
                try:
                    await asyncio.wait_for(ws.send_json(message), timeout=self.send_timeout)
                    delivered += 1
                except asyncio.TimeoutError:
                    dropped.append(ws)
                except Exception:
                    dropped.append(ws)

            for ws in dropped:
                self._subscribers.remove(ws)
            if dropped:
                logger.info("Dropped %d slow or disconnected subscriber(s)", len(dropped))
        return delivered

    async def publish(self, event_type: str, payload: CamelModel) -> int:
        """Wrap `payload` as a typed event and broadcast it."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type '{event_type}'")
        return await self.broadcast({"type": event_type, "data": payload.to_event()})

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


event_bus = EventBus()
