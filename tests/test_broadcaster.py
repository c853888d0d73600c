"""Tests for event factory helpers in the broadcaster module."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

from backend.app.services import broadcaster
from backend.app.services.broadcaster import (
    broadcast_event,
    comment_added_event,
    issue_created_event,
    issue_deleted_event,
    issue_updated_event,
    issue_voted_event,
)


def _issue(**overrides):
    fields = dict(
        id="issue-1",
        title="Broken streetlight",
        category="Streetlight",
        status="Open",
        severity=2,
        latitude=12.97,
        longitude=77.59,
        address="5th Cross",
        image_url=None,
        upvotes=3,
        downvotes=1,
        created_at="2025-01-01T00:00:00+00:00",
        updated_at="2025-01-01T00:00:00+00:00",
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_issue_created_event_structure():
    """issue_created carries the issue summary used by the map and list views."""
    event = issue_created_event(_issue())
    assert event["type"] == "issue_created"
    data = event["data"]
    assert data["id"] == "issue-1"
    assert data["category"] == "Streetlight"
    assert data["status"] == "Open"
    assert data["upvotes"] == 3
    assert data["downvotes"] == 1


def test_issue_updated_event_includes_update_type():
    event = issue_updated_event(_issue(status="Resolved"), update_type="status")
    assert event["type"] == "issue_updated"
    assert event["data"]["update_type"] == "status"
    assert event["data"]["status"] == "Resolved"


def test_issue_updated_event_defaults_to_edited():
    assert issue_updated_event(_issue())["data"]["update_type"] == "edited"


def test_issue_deleted_event_structure():
    event = issue_deleted_event("issue-1", "Pothole", "Open")
    assert event == {
        "type": "issue_deleted",
        "data": {"id": "issue-1", "category": "Pothole", "status": "Open"},
    }


def test_issue_voted_event_structure():
    event = issue_voted_event("issue-1", "Pothole", "Open", upvotes=4, downvotes=2)
    assert event["type"] == "issue_voted"
    assert event["data"]["upvotes"] == 4
    assert event["data"]["downvotes"] == 2


def test_comment_added_event_structure():
    event = comment_added_event(
        comment_id="c-1",
        issue_id="issue-1",
        user_id="u-1",
        user_name="Ravi",
        text="Same here",
        created_at="2025-01-01T00:00:00",
    )
    assert event["type"] == "comment_added"
    data = event["data"]
    assert data["id"] == "c-1"
    assert data["issue_id"] == "issue-1"
    assert data["user_name"] == "Ravi"
    assert data["text"] == "Same here"


def test_comment_added_event_default_created_at():
    event = comment_added_event("c-1", "issue-1", "u-1", None, "hi")
    assert event["data"]["created_at"] == ""
    assert event["data"]["user_name"] is None


async def test_broadcast_event_swallows_errors(monkeypatch):
    """A failing manager must not break the request that triggered the event."""
    manager = SimpleNamespace(broadcast=AsyncMock(side_effect=RuntimeError("boom")))
    monkeypatch.setattr(broadcaster, "ws_manager", manager)

    await broadcast_event({"type": "issue_created", "data": {}})
    manager.broadcast.assert_awaited_once()
