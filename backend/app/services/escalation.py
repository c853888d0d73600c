"""Proximity-based escalation grouping.

Issues are bucketed by their coordinates rounded to three decimal places
(roughly a 100 m cell). A bucket escalates when it holds at least
``threshold`` issues overall and at least ``min_recent`` of them were
reported inside the time window.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

BUCKET_SCALE = 1000


def js_round(value: float) -> int:
    """Half-up rounding, matching JavaScript's Math.round (round() is half-even)."""
    return math.floor(value + 0.5)


def bucket_key(latitude: float, longitude: float) -> str:
    return f"{js_round(latitude * BUCKET_SCALE)}-{js_round(longitude * BUCKET_SCALE)}"


@dataclass
class Escalation:
    bucket: str
    latitude: float
    longitude: float
    address: str
    issues: list[Any] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.issues)


def _parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def find_escalations(
    issues: Iterable[Any],
    threshold: int = 5,
    min_recent: int = 3,
    window_hours: int = 24,
    now: datetime | None = None,
) -> list[Escalation]:
    """Group issues by rounded coordinates and return the buckets that escalate.

    ``issues`` only need ``latitude``, ``longitude``, ``address`` and an ISO
    ``created_at`` attribute. Issues without coordinates are ignored.
    Buckets come back in first-seen order.
    """
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(hours=window_hours)

    groups: dict[str, list[Any]] = {}
    for issue in issues:
        if issue.latitude is None or issue.longitude is None:
            continue
        groups.setdefault(bucket_key(issue.latitude, issue.longitude), []).append(issue)

    escalations = []
    for key, group in groups.items():
        if len(group) < threshold:
            continue
        recent = [i for i in group if _parse_ts(i.created_at) > cutoff]
        if len(recent) < min_recent:
            continue
        first = group[0]
        escalations.append(
            Escalation(
                bucket=key,
                latitude=first.latitude,
                longitude=first.longitude,
                address=first.address,
                issues=recent,
            )
        )
    return escalations
