"""Real-time event factories and the broadcast entrypoint.

Events are plain dicts of the form ``{"type": ..., "data": {...}}`` so the
frontend can switch on ``type`` without knowing about our schemas.
"""

import logging
from typing import Any

from backend.app.services.ws_manager import ws_manager

logger = logging.getLogger(__name__)


async def broadcast_event(event: dict[str, Any]) -> None:
    """Push an event to subscribed WebSocket clients. Never raises."""
    try:
        count = await ws_manager.broadcast(event)
        logger.debug("Broadcast %s to %d client(s)", event.get("type"), count)
    except Exception:
        logger.exception("Broadcast of %s failed", event.get("type"))


def _issue_summary(issue: Any) -> dict[str, Any]:
    return {
        "id": issue.id,
        "title": issue.title,
        "category": issue.category,
        "status": issue.status,
        "severity": issue.severity,
        "latitude": issue.latitude,
        "longitude": issue.longitude,
        "address": issue.address,
        "image_url": issue.image_url,
        "upvotes": issue.upvotes,
        "downvotes": issue.downvotes,
        "created_at": issue.created_at,
        "updated_at": issue.updated_at,
    }


def issue_created_event(issue: Any) -> dict[str, Any]:
    return {"type": "issue_created", "data": _issue_summary(issue)}


def issue_updated_event(issue: Any, update_type: str = "edited") -> dict[str, Any]:
    data = _issue_summary(issue)
    data["update_type"] = update_type
    return {"type": "issue_updated", "data": data}


def issue_deleted_event(issue_id: str, category: str, status: str) -> dict[str, Any]:
    return {
        "type": "issue_deleted",
        "data": {"id": issue_id, "category": category, "status": status},
    }


def issue_voted_event(
    issue_id: str,
    category: str,
    status: str,
    upvotes: int,
    downvotes: int,
) -> dict[str, Any]:
    return {
        "type": "issue_voted",
        "data": {
            "id": issue_id,
            "category": category,
            "status": status,
            "upvotes": upvotes,
            "downvotes": downvotes,
        },
    }


def comment_added_event(
    comment_id: str,
    issue_id: str,
    user_id: str,
    user_name: str | None,
    text: str,
    created_at: str = "",
) -> dict[str, Any]:
    return {
        "type": "comment_added",
        "data": {
            "id": comment_id,
            "issue_id": issue_id,
            "user_id": user_id,
            "user_name": user_name,
            "text": text,
            "created_at": created_at,
        },
    }
