"""Issue comment endpoints."""

import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import asc, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_issue_or_404
from backend.app.db import get_db
from backend.app.models.issue import IssueComment
from backend.app.models.user import User
from backend.app.schemas.issue import CommentCreate, CommentResponse
from backend.app.services.broadcaster import broadcast_event, comment_added_event

router = APIRouter(prefix="/issues/{issue_id}/comments", tags=["comments"])


@router.get("", response_model=list[CommentResponse])
async def list_comments(issue_id: str, db: AsyncSession = Depends(get_db)) -> list[IssueComment]:
    await get_issue_or_404(db, issue_id)
    result = await db.execute(
        select(IssueComment)
        .where(IssueComment.issue_id == issue_id)
        .order_by(asc(IssueComment.created_at))
    )
    return list(result.scalars().all())


@router.post("", response_model=CommentResponse, status_code=201)
async def add_comment(
    issue_id: str,
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> IssueComment:
    await get_issue_or_404(db, issue_id)

    comment = IssueComment(
        id=str(uuid.uuid4()),
        issue_id=issue_id,
        user_id=user.id,
        user_name=user.display_name or user.email,
        text=data.text,
        created_at=datetime.now(UTC).isoformat(),
    )
    db.add(comment)
    await db.flush()

    await broadcast_event(
        comment_added_event(
            comment_id=comment.id,
            issue_id=issue_id,
            user_id=user.id,
            user_name=comment.user_name,
            text=comment.text,
            created_at=comment.created_at,
        )
    )
    return comment
