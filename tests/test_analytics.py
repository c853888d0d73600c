"""Tests for dashboard analytics."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

from backend.app.services.analytics import (
    average_resolution_hours,
    compute_stats,
    most_active_users,
    severity_distribution,
    top_categories,
    weekly_trend,
)

NOW = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)


def _issue(
    category="Pothole",
    status="Open",
    severity=3,
    days_ago=0,
    resolved_after_hours=None,
    reporter="u1",
):
    created = NOW - timedelta(days=days_ago)
    resolved = created + timedelta(hours=resolved_after_hours) if resolved_after_hours else None
    return SimpleNamespace(
        category=category,
        status=status,
        severity=severity,
        created_at=created.isoformat(),
        resolved_at=resolved.isoformat() if resolved else None,
        reporter_id=reporter,
        reporter_name=f"name-{reporter}",
        reporter_email=f"{reporter}@example.com",
    )


def test_average_resolution_hours():
    issues = [
        _issue(status="Resolved", resolved_after_hours=4),
        _issue(status="Resolved", resolved_after_hours=10),
        _issue(status="Open"),
    ]
    assert average_resolution_hours(issues) == 7


def test_average_resolution_hours_none_resolved():
    assert average_resolution_hours([_issue()]) == 0


def test_top_categories_limited_and_ordered():
    issues = [_issue(category=c) for c in "AAABBCDEFG"]
    result = top_categories(issues)
    assert len(result) == 5
    assert result[0] == {"name": "A", "value": 3}
    assert result[1] == {"name": "B", "value": 2}


def test_severity_distribution_has_all_levels():
    dist = severity_distribution([_issue(severity=1), _issue(severity=5), _issue(severity=5)])
    assert dist == {1: 1, 2: 0, 3: 0, 4: 0, 5: 2}


def test_weekly_trend_covers_seven_days():
    issues = [_issue(days_ago=0), _issue(days_ago=0), _issue(days_ago=6), _issue(days_ago=9)]
    trend = weekly_trend(issues, NOW)
    assert len(trend) == 7
    assert trend[0] == {"date": "2025-06-04", "count": 1}
    assert trend[-1] == {"date": "2025-06-10", "count": 2}


def test_most_active_users():
    issues = [_issue(reporter="u1"), _issue(reporter="u2"), _issue(reporter="u2")]
    result = most_active_users(issues)
    assert result[0] == {
        "user_id": "u2",
        "name": "name-u2",
        "email": "u2@example.com",
        "count": 2,
    }


def test_compute_stats_counts():
    issues = [
        _issue(status="Open", days_ago=1),
        _issue(status="In Progress", days_ago=10),
        _issue(status="Resolved", days_ago=40, resolved_after_hours=2),
    ]
    stats = compute_stats(issues, now=NOW)
    assert stats["total_issues"] == 3
    assert stats["open_issues"] == 1
    assert stats["in_progress_issues"] == 1
    assert stats["resolved_issues"] == 1
    assert stats["this_week_issues"] == 1
    assert stats["this_month_issues"] == 2
    assert stats["average_resolution_time"] == 2


def test_compute_stats_empty():
    stats = compute_stats([], now=NOW)
    assert stats["total_issues"] == 0
    assert stats["top_categories"] == []
    assert stats["most_active_users"] == []
