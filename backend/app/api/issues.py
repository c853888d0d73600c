"""Issue endpoints: listing, reporting, editing, voting and photos."""

import logging
import uuid
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from backend.app.api.deps import (
    commit_issue_write,
    ensure_can_modify,
    filter_value,
    get_current_user,
    get_issue_or_404,
    issue_to_dict,
)
from backend.app.config import settings
from backend.app.db import get_db
from backend.app.models.issue import STATUS_OPEN, Issue, IssueVote
from backend.app.models.user import User
from backend.app.schemas.issue import (
    IssueCreate,
    IssueResponse,
    IssueUpdate,
    VoteCreate,
    VoteDirection,
    VoteResult,
)
from backend.app.services.broadcaster import (
    broadcast_event,
    issue_created_event,
    issue_deleted_event,
    issue_updated_event,
    issue_voted_event,
)
from backend.app.services.cloudinary import CloudinaryClient, CloudinaryError, get_cloudinary
from backend.app.services.image_compression import ImageValidationError, prepare_upload
from backend.app.services.issue_cache import issue_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issues", tags=["issues"])

SortBy = Literal["newest", "oldest", "upvotes"]


def _severity_filter(value: str | None) -> int | None:
    value = filter_value(value)
    if value is None:
        return None
    if value not in ("1", "2", "3", "4", "5"):
        raise HTTPException(status_code=422, detail="severity must be 1-5 or All")
    return int(value)


@router.get("", response_model=list[IssueResponse])
async def list_issues(
    category: str | None = None,
    status: str | None = None,
    severity: str | None = None,
    reporter_id: str | None = None,
    sort_by: SortBy = "newest",
    limit: int | None = Query(default=None, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    filters = {
        "category": filter_value(category),
        "status": filter_value(status),
        "severity": _severity_filter(severity),
        "reporter_id": reporter_id,
        "sort_by": sort_by,
        "limit": limit or settings.default_list_limit,
    }
    cache_key = issue_cache.make_key(filters)
    cached = issue_cache.get(cache_key)
    if cached is not None:
        return cached
    generation = issue_cache.generation

    query = select(Issue)
    if filters["category"]:
        query = query.where(Issue.category == filters["category"])
    if filters["status"]:
        query = query.where(Issue.status == filters["status"])
    if filters["severity"] is not None:
        query = query.where(Issue.severity == filters["severity"])
    if reporter_id:
        query = query.where(Issue.reporter_id == reporter_id)

    if sort_by == "upvotes":
        upvote_count = (
            select(func.count())
            .where(IssueVote.issue_id == Issue.id, IssueVote.direction == "up")
            .correlate(Issue)
            .scalar_subquery()
        )
        query = query.order_by(desc(upvote_count), desc(Issue.created_at))
    elif sort_by == "oldest":
        query = query.order_by(asc(Issue.created_at))
    else:
        query = query.order_by(desc(Issue.created_at))

    query = query.limit(filters["limit"])
    result = await db.execute(query)
    issues = [issue_to_dict(i) for i in result.scalars().all()]

    issue_cache.set(cache_key, issues, generation=generation)
    return issues


@router.get("/mine", response_model=list[IssueResponse])
async def list_my_issues(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    result = await db.execute(
        select(Issue).where(Issue.reporter_id == user.id).order_by(desc(Issue.created_at))
    )
    return [issue_to_dict(i) for i in result.scalars().all()]


@router.post("", response_model=IssueResponse, status_code=201)
async def create_issue(
    data: IssueCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    now = datetime.now(UTC).isoformat()
    issue = Issue(
        id=str(uuid.uuid4()),
        title=data.title,
        description=data.description,
        category=data.category,
        severity=data.severity,
        status=STATUS_OPEN,
        latitude=data.location.latitude,
        longitude=data.location.longitude,
        address=data.location.address,
        reporter_id=user.id,
        reporter_email=user.email,
        reporter_name=user.display_name,
        created_at=now,
        updated_at=now,
        votes=[],
    )
    db.add(issue)
    await commit_issue_write(db)
    logger.info("Issue %s created by %s (%s)", issue.id, user.id, issue.category)

    await broadcast_event(issue_created_event(issue))
    return issue_to_dict(issue)


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(issue_id: str, db: AsyncSession = Depends(get_db)) -> dict:
    return issue_to_dict(await get_issue_or_404(db, issue_id))


@router.patch("/{issue_id}", response_model=IssueResponse)
async def update_issue(
    issue_id: str,
    data: IssueUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    issue = await get_issue_or_404(db, issue_id)
    ensure_can_modify(issue, user)

    if data.title is not None:
        issue.title = data.title
    if data.description is not None:
        issue.description = data.description
    if data.category is not None:
        issue.category = data.category
    if data.severity is not None:
        issue.severity = data.severity
    if data.location is not None:
        issue.latitude = data.location.latitude
        issue.longitude = data.location.longitude
        issue.address = data.location.address
    issue.updated_at = datetime.now(UTC).isoformat()
    issue.updated_by = user.id
    await commit_issue_write(db)

    await broadcast_event(issue_updated_event(issue))
    return issue_to_dict(issue)


@router.delete("/{issue_id}", status_code=204)
async def delete_issue(
    issue_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cdn: CloudinaryClient = Depends(get_cloudinary),
) -> None:
    issue = await get_issue_or_404(db, issue_id)
    ensure_can_modify(issue, user)

    if issue.image_public_id:
        await _delete_image_quietly(cdn, issue.image_public_id)

    category, status = issue.category, issue.status
    await db.delete(issue)
    await commit_issue_write(db)
    logger.info("Issue %s deleted by %s", issue_id, user.id)

    await broadcast_event(issue_deleted_event(issue_id, category, status))


@router.post("/{issue_id}/image", response_model=IssueResponse)
async def upload_issue_image(
    issue_id: str,
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cdn: CloudinaryClient = Depends(get_cloudinary),
) -> dict:
    issue = await get_issue_or_404(db, issue_id)
    ensure_can_modify(issue, user)

    # One byte past the cap is enough to reject an oversize upload
    content = await file.read(settings.max_upload_bytes + 1)
    try:
        image = await run_in_threadpool(
            prepare_upload, content, file.content_type, file.filename or "upload"
        )
    except ImageValidationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    try:
        uploaded = await cdn.upload(image)
    except CloudinaryError as exc:
        logger.error("Image upload for issue %s failed: %s", issue_id, exc)
        raise HTTPException(status_code=502, detail=f"Image upload failed: {exc}") from exc

    old_public_id = issue.image_public_id
    issue.image_url = uploaded.url
    issue.image_public_id = uploaded.public_id
    issue.thumbnail_url = uploaded.thumbnail_url
    issue.updated_at = datetime.now(UTC).isoformat()
    issue.updated_by = user.id
    await commit_issue_write(db)

    if old_public_id:
        await _delete_image_quietly(cdn, old_public_id)

    await broadcast_event(issue_updated_event(issue, update_type="image"))
    return issue_to_dict(issue)


async def _delete_image_quietly(cdn: CloudinaryClient, public_id: str) -> None:
    """A failed image delete must not block the issue write."""
    try:
        await cdn.delete(public_id)
    except CloudinaryError as exc:
        logger.warning("Failed to delete image %s: %s", public_id, exc)


# --- Votes ---


async def _cast_vote(
    db: AsyncSession, issue_id: str, user: User, direction: VoteDirection
) -> dict:
    issue = await get_issue_or_404(db, issue_id)

    existing = next((v for v in issue.votes if v.user_id == user.id), None)
    if existing is None:
        issue.votes.append(
            IssueVote(
                issue_id=issue.id,
                user_id=user.id,
                direction=direction,
                created_at=datetime.now(UTC).isoformat(),
            )
        )
        outcome = "added"
    elif existing.direction == direction:
        issue.votes.remove(existing)
        outcome = "removed"
    else:
        existing.direction = direction
        outcome = "changed"

    issue.updated_at = datetime.now(UTC).isoformat()
    await commit_issue_write(db)

    await broadcast_event(
        issue_voted_event(issue.id, issue.category, issue.status, issue.upvotes, issue.downvotes)
    )
    return {
        "status": outcome,
        "direction": direction,
        "upvotes": issue.upvotes,
        "downvotes": issue.downvotes,
    }


@router.post("/{issue_id}/vote", response_model=VoteResult)
async def vote_issue(
    issue_id: str,
    data: VoteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Vote on an issue. Repeating the same direction withdraws the vote."""
    return await _cast_vote(db, issue_id, user, data.direction)


@router.post("/{issue_id}/upvote", response_model=VoteResult)
async def upvote_issue(
    issue_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await _cast_vote(db, issue_id, user, "up")


@router.post("/{issue_id}/downvote", response_model=VoteResult)
async def downvote_issue(
    issue_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await _cast_vote(db, issue_id, user, "down")
