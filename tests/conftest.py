"""Shared fixtures and factory helpers.

Every test gets a fresh in-memory SQLite database. The ``client`` fixture
routes the app's ``get_db`` dependency to that database and swaps the
Cloudinary client for an in-memory fake.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import backend.app.models  # noqa: F401  register tables
from backend.app.db import Base, get_db
from backend.app.main import app
from backend.app.models.issue import STATUS_OPEN, Issue, IssueComment, IssueVote
from backend.app.models.user import User
from backend.app.services.cloudinary import CloudinaryError, UploadResult, get_cloudinary
from backend.app.services.image_compression import PreparedImage
from backend.app.services.issue_cache import issue_cache


class FakeCloudinary:
    """Records uploads/deletes instead of calling the CDN."""

    def __init__(self) -> None:
        self.uploads: list[PreparedImage] = []
        self.deleted: list[str] = []
        self.fail_upload = False
        self.fail_delete = False

    async def upload(self, image: PreparedImage, folder: str | None = None) -> UploadResult:
        if self.fail_upload:
            raise CloudinaryError("Upload failed: simulated")
        self.uploads.append(image)
        public_id = f"citysense/issues/fake_{len(self.uploads)}"
        return UploadResult(
            url=f"https://res.cloudinary.com/test/image/upload/{public_id}.jpg",
            public_id=public_id,
            thumbnail_url=f"https://res.cloudinary.com/test/image/upload/thumb/{public_id}",
        )

    async def delete(self, public_id: str) -> bool:
        if self.fail_delete:
            raise CloudinaryError("Delete failed: simulated")
        self.deleted.append(public_id)
        return True


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_cdn() -> FakeCloudinary:
    return FakeCloudinary()


@pytest.fixture(autouse=True)
def _clear_issue_cache():
    issue_cache.clear()
    yield
    issue_cache.clear()


@pytest.fixture
async def client(session_factory, fake_cdn) -> AsyncGenerator[AsyncClient, None]:
    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_cloudinary] = lambda: fake_cdn
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------


def auth(user: User) -> dict[str, str]:
    return {"X-User-Id": user.id}


async def create_user(
    db: AsyncSession,
    email: str | None = None,
    display_name: str | None = None,
    role: str = "citizen",
    user_id: str | None = None,
) -> User:
    user_id = user_id or str(uuid.uuid4())
    user = User(
        id=user_id,
        email=email or f"{user_id[:8]}@example.com",
        display_name=display_name,
        role=role,
        created_at=datetime.now(UTC).isoformat(),
    )
    db.add(user)
    await db.flush()
    return user


async def create_issue(
    db: AsyncSession,
    reporter: User,
    title: str = "Pothole on Main St",
    description: str = "Large pothole near the crossing",
    category: str = "Pothole",
    severity: int = 3,
    status: str = STATUS_OPEN,
    latitude: float | None = 12.9716,
    longitude: float | None = 77.5946,
    address: str = "Main St",
    created_at: datetime | None = None,
    resolved_at: datetime | None = None,
    image_public_id: str | None = None,
) -> Issue:
    created = (created_at or datetime.now(UTC)).isoformat()
    issue = Issue(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        category=category,
        severity=severity,
        status=status,
        latitude=latitude,
        longitude=longitude,
        address=address,
        reporter_id=reporter.id,
        reporter_email=reporter.email,
        reporter_name=reporter.display_name,
        image_public_id=image_public_id,
        image_url=f"https://cdn.test/{image_public_id}.jpg" if image_public_id else None,
        created_at=created,
        updated_at=created,
        resolved_at=resolved_at.isoformat() if resolved_at else None,
        votes=[],
    )
    db.add(issue)
    await db.flush()
    return issue


async def create_vote(
    db: AsyncSession, issue_id: str, user_id: str, direction: str = "up"
) -> IssueVote:
    vote = IssueVote(
        issue_id=issue_id,
        user_id=user_id,
        direction=direction,
        created_at=datetime.now(UTC).isoformat(),
    )
    db.add(vote)
    await db.flush()
    return vote


async def create_comment(
    db: AsyncSession, issue_id: str, user: User, text: str = "Still there today"
) -> IssueComment:
    comment = IssueComment(
        id=str(uuid.uuid4()),
        issue_id=issue_id,
        user_id=user.id,
        user_name=user.display_name,
        text=text,
        created_at=datetime.now(UTC).isoformat(),
    )
    db.add(comment)
    await db.flush()
    return comment
