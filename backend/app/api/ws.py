"""Live issue feed over WebSocket."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from backend.app.api.deps import filter_value
from backend.app.services.ws_manager import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ws"])


@router.websocket("/ws")
async def issue_feed(
    websocket: WebSocket,
    category: str | None = None,
    status: str | None = None,
) -> None:
    """Push issue events to the client, optionally narrowed by category/status.

    ``All`` subscribes to every value, like the listing filters. Clients may
    send ``"ping"`` to keep the connection alive; anything else is ignored.
    """
    sub = await ws_manager.connect(
        websocket, category=filter_value(category), status=filter_value(status)
    )
    try:
        while True:
            text = await websocket.receive_text()
            if text == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await ws_manager.disconnect(sub)
