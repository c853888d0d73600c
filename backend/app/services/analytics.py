"""Dashboard analytics computed over a list of issues."""

from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from backend.app.models.issue import STATUS_IN_PROGRESS, STATUS_OPEN, STATUS_RESOLVED


def _ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def average_resolution_hours(issues: Sequence[Any]) -> int:
    resolved = [i for i in issues if i.status == STATUS_RESOLVED and i.resolved_at]
    if not resolved:
        return 0
    # Whole hours per issue, like the dashboard always showed
    total = sum(
        int((_ts(i.resolved_at) - _ts(i.created_at)).total_seconds() // 3600) for i in resolved
    )
    return round(total / len(resolved))


def top_categories(issues: Sequence[Any], limit: int = 5) -> list[dict[str, Any]]:
    counts = Counter(i.category for i in issues)
    return [{"name": name, "value": value} for name, value in counts.most_common(limit)]


def severity_distribution(issues: Sequence[Any]) -> dict[int, int]:
    dist = {level: 0 for level in range(1, 6)}
    for issue in issues:
        if issue.severity in dist:
            dist[issue.severity] += 1
    return dist


def weekly_trend(issues: Sequence[Any], now: datetime) -> list[dict[str, Any]]:
    days = [(now - timedelta(days=offset)).date() for offset in range(6, -1, -1)]
    counts = Counter(_ts(i.created_at).date() for i in issues)
    return [{"date": day.isoformat(), "count": counts.get(day, 0)} for day in days]


def most_active_users(issues: Sequence[Any], limit: int = 5) -> list[dict[str, Any]]:
    counts = Counter(i.reporter_id for i in issues)
    latest: dict[str, Any] = {}
    for issue in issues:
        latest.setdefault(issue.reporter_id, issue)
    return [
        {
            "user_id": user_id,
            "name": latest[user_id].reporter_name,
            "email": latest[user_id].reporter_email,
            "count": count,
        }
        for user_id, count in counts.most_common(limit)
    ]


def compute_stats(issues: Sequence[Any], now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(UTC)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    statuses = Counter(i.status for i in issues)

    return {
        "total_issues": len(issues),
        "open_issues": statuses.get(STATUS_OPEN, 0),
        "in_progress_issues": statuses.get(STATUS_IN_PROGRESS, 0),
        "resolved_issues": statuses.get(STATUS_RESOLVED, 0),
        "this_week_issues": sum(1 for i in issues if _ts(i.created_at) > week_ago),
        "this_month_issues": sum(1 for i in issues if _ts(i.created_at) > month_ago),
        "average_resolution_time": average_resolution_hours(issues),
        "top_categories": top_categories(issues),
        "severity_distribution": severity_distribution(issues),
        "weekly_trend": weekly_trend(issues, now),
        "most_active_users": most_active_users(issues),
    }
