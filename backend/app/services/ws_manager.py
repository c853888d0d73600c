"""WebSocket connection registry.

Each client subscribes with optional ``category`` / ``status`` filters; issue
events are only delivered to clients whose filters match the issue in the
event payload.
"""

import asyncio
import logging
from dataclasses import dataclass

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass
class Subscription:
    websocket: WebSocket
    category: str | None = None
    status: str | None = None
    id: int = 0

    def matches(self, event: dict) -> bool:
        data = event.get("data", {})
        if self.category and data.get("category") not in (None, self.category):
            return False
        if self.status and data.get("status") not in (None, self.status):
            return False
        return True


class WebSocketManager:
    def __init__(self) -> None:
        self._subs: dict[int, Subscription] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    @property
    def active_count(self) -> int:
        return len(self._subs)

    async def connect(
        self,
        websocket: WebSocket,
        category: str | None = None,
        status: str | None = None,
    ) -> Subscription:
        await websocket.accept()
        async with self._lock:
            sub = Subscription(websocket, category, status, id=self._next_id)
            self._subs[sub.id] = sub
            self._next_id += 1
        logger.info("WebSocket connected (id=%d, total=%d)", sub.id, self.active_count)
        return sub

    async def disconnect(self, sub: Subscription) -> None:
        async with self._lock:
            self._subs.pop(sub.id, None)
        logger.info("WebSocket disconnected (id=%d, total=%d)", sub.id, self.active_count)

    async def broadcast(self, event: dict) -> int:
        """Send an event to all matching clients. Returns the number delivered."""
        async with self._lock:
            targets = [s for s in self._subs.values() if s.matches(event)]

        delivered = 0
        dead: list[Subscription] = []
        for sub in targets:
            try:
                await sub.websocket.send_json(event)
                delivered += 1
            except Exception:
                logger.warning("Dropping unreachable WebSocket client id=%d", sub.id)
                dead.append(sub)

        for sub in dead:
            await self.disconnect(sub)
        return delivered

    async def close_all(self) -> None:
        async with self._lock:
            subs = list(self._subs.values())
            self._subs.clear()
        for sub in subs:
            try:
                await sub.websocket.close()
            except Exception:
                logger.debug("WebSocket id=%d already closed", sub.id)


ws_manager = WebSocketManager()
