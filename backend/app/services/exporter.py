"""CSV and PDF exports for the admin dashboard."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import pandas as pd
from fpdf import FPDF

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "Issue ID",
    "Title",
    "Description",
    "Category",
    "Status",
    "Severity",
    "Location Address",
    "Latitude",
    "Longitude",
    "Upvotes",
    "Downvotes",
    "Reported Date",
    "Reporter Name",
    "Reporter Email",
    "Image URL",
    "Updated Date",
    "Resolution Date",
]

_ALL = ("", "all", "All")


def _ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def _date(value: str | None, fmt: str = "%Y-%m-%d") -> str:
    return _ts(value).strftime(fmt) if value else "N/A"


def filter_issues(
    issues: Sequence[Any],
    category: str | None = None,
    status: str | None = None,
    severity: str | int | None = None,
    days: str | int | None = None,
    now: datetime | None = None,
) -> list[Any]:
    """Apply the export dialog's filters. ``"all"`` disables a filter."""
    now = now or datetime.now(UTC)
    cutoff = None
    if days not in (None, *_ALL):
        try:
            cutoff = now - timedelta(days=int(days))
        except (OverflowError, ValueError):
            # Window reaches past datetime.min (or has too many digits to parse)
            cutoff = None

    out = []
    for issue in issues:
        if category not in (None, *_ALL) and issue.category != category:
            continue
        if status not in (None, *_ALL) and issue.status != status:
            continue
        if severity not in (None, *_ALL) and str(issue.severity) != str(severity):
            continue
        if cutoff is not None and _ts(issue.created_at) <= cutoff:
            continue
        out.append(issue)
    return out


def issues_to_csv(issues: Sequence[Any]) -> str:
    rows = [
        {
            "Issue ID": i.id,
            "Title": i.title,
            "Description": i.description,
            "Category": i.category,
            "Status": i.status,
            "Severity": i.severity,
            "Location Address": i.address or "N/A",
            "Latitude": i.latitude if i.latitude is not None else "",
            "Longitude": i.longitude if i.longitude is not None else "",
            "Upvotes": i.upvotes,
            "Downvotes": i.downvotes,
            "Reported Date": _date(i.created_at, "%Y-%m-%d %H:%M:%S"),
            "Reporter Name": i.reporter_name or "Unknown",
            "Reporter Email": i.reporter_email or "Unknown",
            "Image URL": i.image_url or "N/A",
            "Updated Date": _date(i.updated_at),
            "Resolution Date": _date(i.resolved_at),
        }
        for i in issues
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(index=False)


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


class _ReportWriter:
    """Places text line by line, starting a new page near the bottom margin."""

    TOP = 20.0
    LEFT = 20.0

    def __init__(self) -> None:
        self.pdf = FPDF(orientation="P", unit="mm", format="A4")
        self.pdf.set_auto_page_break(False)
        self.pdf.add_page()
        self.y = self.TOP

    def font(self, size: int, bold: bool = False) -> None:
        self.pdf.set_font("Helvetica", style="B" if bold else "", size=size)

    def line(self, text: str, step: float, x: float | None = None, center: bool = False) -> None:
        if self.y > self.pdf.h - 30:
            self.pdf.add_page()
            self.y = self.TOP
        text = _latin1(text)
        if center:
            x = (self.pdf.w - self.pdf.get_string_width(text)) / 2
        self.pdf.text(x if x is not None else self.LEFT, self.y, text)
        self.y += step

    def gap(self, step: float) -> None:
        self.y += step

    def output(self) -> bytes:
        return bytes(self.pdf.output())


def issues_to_pdf(
    issues: Sequence[Any],
    stats: dict[str, Any],
    now: datetime | None = None,
) -> bytes:
    now = now or datetime.now(UTC)
    w = _ReportWriter()

    w.font(20, bold=True)
    w.line("CitySense Issues Report", 15, center=True)
    w.font(12)
    w.line(f"Generated on: {now.strftime('%B %d, %Y %H:%M')}", 20, center=True)

    w.font(16, bold=True)
    w.line("Summary Statistics", 10)
    w.font(12)
    for text in (
        f"Total Issues: {stats['total_issues']}",
        f"Resolved Issues: {stats['resolved_issues']}",
        f"In Progress: {stats['in_progress_issues']}",
        f"Open Issues: {stats['open_issues']}",
        f"Issues This Week: {stats['this_week_issues']}",
        f"Issues This Month: {stats['this_month_issues']}",
        f"Average Resolution Time: {stats['average_resolution_time']} hours",
    ):
        w.line(text, 8)
    w.gap(15)

    if stats["top_categories"]:
        w.font(16, bold=True)
        w.line("Top Categories", 10)
        w.font(12)
        for n, cat in enumerate(stats["top_categories"], start=1):
            w.line(f"{n}. {cat['name']}: {cat['value']} issues", 8, x=25)
        w.gap(15)

    w.font(16, bold=True)
    w.line("Recent Issues (Last 10)", 10)
    w.font(10)
    recent = sorted(issues, key=lambda i: i.created_at, reverse=True)[:10]
    for n, issue in enumerate(recent, start=1):
        for text in (
            f"{n}. {issue.title}",
            f"   Category: {issue.category} | Severity: {issue.severity} | Status: {issue.status}",
            f"   Location: {issue.address or 'N/A'}",
            f"   Reporter: {issue.reporter_name or 'Unknown'} ({issue.reporter_email or 'N/A'})",
            f"   Date: {_date(issue.created_at, '%b %d, %Y %H:%M')}",
        ):
            w.line(text, 5)
        w.gap(5)

    data = w.output()
    logger.info("Rendered PDF report: %d issues, %d bytes", len(issues), len(data))
    return data


def csv_filename(now: datetime | None = None) -> str:
    return f"citysense-issues-{(now or datetime.now(UTC)).strftime('%Y-%m-%d-%H-%M')}.csv"


def pdf_filename(now: datetime | None = None) -> str:
    return f"citysense-report-{(now or datetime.now(UTC)).strftime('%Y-%m-%d')}.pdf"
