"""User profile endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user
from backend.app.db import get_db
from backend.app.models.user import User
from backend.app.schemas.user import RoleResponse, UserRegister, UserResponse, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


async def _email_taken(db: AsyncSession, email: str, user_id: str) -> bool:
    result = await db.execute(select(User).where(User.email == email, User.id != user_id))
    return result.scalar_one_or_none() is not None


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(data: UserRegister, db: AsyncSession = Depends(get_db)) -> User:
    """Create the profile for a user who just signed up at the identity provider."""
    if await _email_taken(db, data.email, data.id):
        raise HTTPException(status_code=409, detail="Email already registered")

    result = await db.execute(select(User).where(User.id == data.id))
    existing = result.scalar_one_or_none()
    now = datetime.now(UTC).isoformat()
    if existing:
        # Re-registering (e.g. first OAuth sign-in after email sign-up) refreshes the profile
        existing.email = data.email
        existing.display_name = data.display_name or existing.display_name
        existing.updated_at = now
        return existing

    user = User(
        id=data.id,
        email=data.email,
        display_name=data.display_name,
        role="citizen",
        created_at=now,
    )
    db.add(user)
    await db.flush()
    return user


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> User:
    return user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    if data.email is not None:
        if await _email_taken(db, data.email, user.id):
            raise HTTPException(status_code=409, detail="Email already registered")
        user.email = data.email
    if data.display_name is not None:
        user.display_name = data.display_name
    user.updated_at = datetime.now(UTC).isoformat()
    return user


@router.get("/{user_id}/role", response_model=RoleResponse)
async def get_user_role(user_id: str, db: AsyncSession = Depends(get_db)) -> dict:
    result = await db.execute(select(User.role).where(User.id == user_id))
    role = result.scalar_one_or_none()
    # Unknown users are treated as citizens
    return {"user_id": user_id, "role": role or "citizen"}
