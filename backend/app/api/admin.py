"""Admin dashboard endpoints: triage, user roles, analytics, escalations, exports."""

import logging
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import (
    commit_issue_write,
    get_issue_or_404,
    issue_to_dict,
    require_admin,
)
from backend.app.config import settings
from backend.app.db import get_db
from backend.app.models.issue import STATUS_RESOLVED, Issue
from backend.app.models.user import User
from backend.app.schemas.admin import EscalationResponse, StatsResponse
from backend.app.schemas.issue import (
    BatchStatusResult,
    BatchStatusUpdate,
    IssueResponse,
    StatusUpdate,
)
from backend.app.schemas.user import RoleUpdate, UserResponse
from backend.app.services import exporter
from backend.app.services.analytics import compute_stats
from backend.app.services.broadcaster import broadcast_event, issue_updated_event
from backend.app.services.escalation import find_escalations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def apply_status(issue: Issue, status: str, admin_id: str, now: str) -> None:
    issue.status = status
    issue.updated_at = now
    issue.updated_by = admin_id
    if status == STATUS_RESOLVED:
        if not issue.resolved_at:
            issue.resolved_at = now
            issue.resolved_by = admin_id
    else:
        # Reopened
        issue.resolved_at = None
        issue.resolved_by = None


async def _all_issues(db: AsyncSession) -> list[Issue]:
    result = await db.execute(select(Issue).order_by(desc(Issue.created_at)))
    return list(result.scalars().all())


@router.put("/issues/{issue_id}/status", response_model=IssueResponse)
async def update_issue_status(
    issue_id: str,
    data: StatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    issue = await get_issue_or_404(db, issue_id)
    apply_status(issue, data.status, admin.id, datetime.now(UTC).isoformat())
    await commit_issue_write(db)
    logger.info("Issue %s -> %s by %s", issue_id, data.status, admin.id)

    await broadcast_event(issue_updated_event(issue, update_type="status"))
    return issue_to_dict(issue)


@router.post("/issues/batch-status", response_model=BatchStatusResult)
async def batch_update_status(
    data: BatchStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    result = await db.execute(select(Issue).where(Issue.id.in_(data.issue_ids)))
    found = {issue.id: issue for issue in result.scalars().all()}

    now = datetime.now(UTC).isoformat()
    for issue in found.values():
        apply_status(issue, data.status, admin.id, now)
    await commit_issue_write(db)
    logger.info("Batch status %s applied to %d issue(s)", data.status, len(found))

    for issue in found.values():
        await broadcast_event(issue_updated_event(issue, update_type="status"))

    return {
        "updated": [i for i in data.issue_ids if i in found],
        "missing": [i for i in data.issue_ids if i not in found],
    }


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    data: RoleUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    user.role = data.role
    user.updated_at = datetime.now(UTC).isoformat()
    logger.info("User %s role -> %s by %s", user_id, data.role, admin.id)
    return user


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return compute_stats(await _all_issues(db))


@router.get("/escalations", response_model=list[EscalationResponse])
async def get_escalations(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    escalations = find_escalations(
        await _all_issues(db),
        threshold=settings.escalation_threshold,
        min_recent=settings.escalation_min_recent,
        window_hours=settings.escalation_window_hours,
    )
    return [
        {
            "bucket": e.bucket,
            "location": {"latitude": e.latitude, "longitude": e.longitude, "address": e.address},
            "issue_ids": [i.id for i in e.issues],
            "count": e.count,
        }
        for e in escalations
    ]


@router.get("/export")
async def export_issues(
    format: Literal["csv", "pdf"] = "csv",
    category: str = "all",
    status: str = "all",
    severity: str = "all",
    days: str = Query(default="30", pattern=r"^(all|\d+)$"),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    now = datetime.now(UTC)
    issues = exporter.filter_issues(
        await _all_issues(db),
        category=category,
        status=status,
        severity=severity,
        days=days,
        now=now,
    )

    if format == "pdf":
        content = exporter.issues_to_pdf(issues, compute_stats(issues, now=now), now=now)
        media_type, filename = "application/pdf", exporter.pdf_filename(now)
    else:
        content = exporter.issues_to_csv(issues).encode("utf-8")
        media_type, filename = "text/csv; charset=utf-8", exporter.csv_filename(now)

    logger.info("Exported %d issue(s) as %s", len(issues), format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
