"""Tests for CSV/PDF exports."""

import csv
import io
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

from backend.app.services.analytics import compute_stats
from backend.app.services.exporter import (
    CSV_COLUMNS,
    csv_filename,
    filter_issues,
    issues_to_csv,
    issues_to_pdf,
    pdf_filename,
)

NOW = datetime(2025, 6, 10, 14, 5, tzinfo=UTC)


def _issue(n=1, category="Pothole", status="Open", severity=3, days_ago=1, **overrides):
    created = (NOW - timedelta(days=days_ago)).isoformat()
    fields = dict(
        id=f"issue-{n}",
        title=f"Issue {n}",
        description="Deep pothole, near the bus stop",
        category=category,
        status=status,
        severity=severity,
        address="MG Road",
        latitude=12.97,
        longitude=77.59,
        upvotes=2,
        downvotes=0,
        created_at=created,
        updated_at=created,
        resolved_at=None,
        reporter_id="u1",
        reporter_name="Asha",
        reporter_email="asha@example.com",
        image_url=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_filter_issues_all_disables_filters():
    issues = [_issue(1), _issue(2, category="Graffiti", days_ago=90)]
    assert len(filter_issues(issues, "all", "All", "all", "all", now=NOW)) == 2


def test_filter_issues_by_fields():
    issues = [
        _issue(1, category="Pothole", severity=5),
        _issue(2, category="Pothole", severity=2),
        _issue(3, category="Graffiti", severity=5),
        _issue(4, category="Pothole", severity=5, status="Resolved"),
    ]
    result = filter_issues(issues, category="Pothole", status="Open", severity="5", now=NOW)
    assert [i.id for i in result] == ["issue-1"]


def test_filter_issues_by_days():
    issues = [_issue(1, days_ago=3), _issue(2, days_ago=45)]
    assert [i.id for i in filter_issues(issues, days="30", now=NOW)] == ["issue-1"]
    assert [i.id for i in filter_issues(issues, days=7, now=NOW)] == ["issue-1"]


def test_issues_to_csv_header_and_rows():
    text = issues_to_csv([_issue(1), _issue(2, image_url="https://cdn.test/a.jpg")])
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == CSV_COLUMNS
    assert len(rows) == 3

    first = dict(zip(CSV_COLUMNS, rows[1]))
    assert first["Description"] == "Deep pothole, near the bus stop"
    assert first["Image URL"] == "N/A"
    assert first["Resolution Date"] == "N/A"
    assert first["Reported Date"] == "2025-06-09 14:05:00"
    assert dict(zip(CSV_COLUMNS, rows[2]))["Image URL"] == "https://cdn.test/a.jpg"


def test_issues_to_csv_empty():
    text = issues_to_csv([])
    assert text.strip() == ",".join(CSV_COLUMNS)


def test_issues_to_pdf_renders():
    issues = [_issue(n, title=f"Streetlight out – block {n}") for n in range(25)]
    data = issues_to_pdf(issues, compute_stats(issues, now=NOW), now=NOW)
    assert data.startswith(b"%PDF")


def test_issues_to_pdf_empty():
    data = issues_to_pdf([], compute_stats([], now=NOW), now=NOW)
    assert data.startswith(b"%PDF")


def test_filenames():
    assert csv_filename(NOW) == "citysense-issues-2025-06-10-14-05.csv"
    assert pdf_filename(NOW) == "citysense-report-2025-06-10.pdf"


def test_filter_issues_days_beyond_calendar():
    issues = [_issue(1, days_ago=3), _issue(2, days_ago=4000)]
    assert len(filter_issues(issues, days="99999999", now=NOW)) == 2
