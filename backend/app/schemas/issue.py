"""Issue, vote and comment schemas."""

from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

from backend.app.models.issue import ISSUE_CATEGORIES, ISSUE_STATUSES

VoteDirection = Literal["up", "down"]


def _check_category(value: str) -> str:
    if value not in ISSUE_CATEGORIES:
        raise ValueError(f"Category must be one of: {', '.join(ISSUE_CATEGORIES)}")
    return value


def _check_status(value: str) -> str:
    if value not in ISSUE_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(ISSUE_STATUSES)}")
    return value


Category = Annotated[str, AfterValidator(_check_category)]
Status = Annotated[str, AfterValidator(_check_status)]


class Location(BaseModel):
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    address: str

    @field_validator("address")
    @classmethod
    def _address_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Location is required")
        return v

    @model_validator(mode="after")
    def _both_or_neither(self) -> "Location":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class IssueCreate(BaseModel):
    title: str = Field(max_length=200)
    description: str = Field(max_length=5000)
    category: Category
    severity: int = Field(ge=1, le=5)
    location: Location

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class IssueUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: Category | None = None
    severity: int | None = Field(default=None, ge=1, le=5)
    location: Location | None = None

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class StatusUpdate(BaseModel):
    status: Status


class BatchStatusUpdate(BaseModel):
    issue_ids: list[str] = Field(min_length=1)
    status: Status


class BatchStatusResult(BaseModel):
    updated: list[str]
    missing: list[str]


class VoteCreate(BaseModel):
    direction: VoteDirection


class VoteResult(BaseModel):
    status: Literal["added", "removed", "changed"]
    direction: VoteDirection
    upvotes: int
    downvotes: int


class CommentCreate(BaseModel):
    text: str = Field(max_length=2000)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be empty")
        return v


class CommentResponse(BaseModel):
    id: str
    issue_id: str
    user_id: str
    user_name: str | None = None
    text: str
    created_at: str


class IssueResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    severity: int
    status: str
    latitude: float | None = None
    longitude: float | None = None
    address: str
    image_url: str | None = None
    image_public_id: str | None = None
    thumbnail_url: str | None = None
    reporter_id: str
    reporter_email: str | None = None
    reporter_name: str | None = None
    upvotes: int = 0
    downvotes: int = 0
    created_at: str
    updated_at: str
    updated_by: str | None = None
    resolved_at: str | None = None
    resolved_by: str | None = None
