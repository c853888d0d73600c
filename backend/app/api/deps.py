"""Shared request dependencies.

Authentication happens at the identity provider. The gateway in front of
this API forwards the signed-in user's uid as ``X-User-Id``; we only look
the profile (and its role) up.
"""

from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import get_db
from backend.app.models.issue import Issue
from backend.app.models.user import User
from backend.app.services.issue_cache import issue_cache


def filter_value(value: str | None) -> str | None:
    """Treat the dashboard's "All" choice (and empty values) as no filter."""
    if value is None or value == "" or value.lower() == "all":
        return None
    return value


async def commit_issue_write(db: AsyncSession) -> None:
    """Commit an issue write, then drop cached listings built from the old rows."""
    await db.commit()
    issue_cache.clear()


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    result = await db.execute(select(User).where(User.id == x_user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


async def get_issue_or_404(db: AsyncSession, issue_id: str) -> Issue:
    result = await db.execute(select(Issue).where(Issue.id == issue_id))
    issue = result.scalar_one_or_none()
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")
    return issue


def ensure_can_modify(issue: Issue, user: User) -> None:
    if user.role != "admin" and issue.reporter_id != user.id:
        raise HTTPException(status_code=403, detail="Only the reporter or an admin can do that")


def issue_to_dict(issue: Issue) -> dict:
    return {
        "id": issue.id,
        "title": issue.title,
        "description": issue.description,
        "category": issue.category,
        "severity": issue.severity,
        "status": issue.status,
        "latitude": issue.latitude,
        "longitude": issue.longitude,
        "address": issue.address,
        "image_url": issue.image_url,
        "image_public_id": issue.image_public_id,
        "thumbnail_url": issue.thumbnail_url or issue.image_url,
        "reporter_id": issue.reporter_id,
        "reporter_email": issue.reporter_email,
        "reporter_name": issue.reporter_name,
        "upvotes": issue.upvotes,
        "downvotes": issue.downvotes,
        "created_at": issue.created_at,
        "updated_at": issue.updated_at,
        "updated_by": issue.updated_by,
        "resolved_at": issue.resolved_at,
        "resolved_by": issue.resolved_by,
    }
