from __future__ import annotations

from sqlalchemy import Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base

ISSUE_CATEGORIES = (
    "Pothole",
    "Broken Streetlight",
    "Garbage Dumping",
    "Waterlogging",
    "Broken Road",
    "Traffic Signal Issue",
    "Illegal Parking",
    "Noise Pollution",
    "Water Leakage",
    "Other",
)

STATUS_OPEN = "Open"
STATUS_IN_PROGRESS = "In Progress"
STATUS_RESOLVED = "Resolved"
ISSUE_STATUSES = (STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_RESOLVED)


class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, index=True)
    severity: Mapped[int] = mapped_column(Integer, nullable=False, index=True)  # 1..5
    status: Mapped[str] = mapped_column(String, nullable=False, default=STATUS_OPEN, index=True)

    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    address: Mapped[str] = mapped_column(String, nullable=False, default="")

    image_url: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    image_public_id: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    thumbnail_url: Mapped[str | None] = mapped_column(String, nullable=True, default=None)

    # Reporter identity is copied, not joined: users can be deleted without cascading
    reporter_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    reporter_email: Mapped[str | None] = mapped_column(String, nullable=True)
    reporter_name: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[str] = mapped_column(String, nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    resolved_at: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    resolved_by: Mapped[str | None] = mapped_column(String, nullable=True, default=None)

    __table_args__ = (Index("idx_issues_created_at", "created_at"),)

    # Relationships
    votes: Mapped[list[IssueVote]] = relationship(
        "IssueVote", back_populates="issue", cascade="all, delete-orphan", lazy="selectin"
    )
    comments: Mapped[list[IssueComment]] = relationship(
        "IssueComment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="IssueComment.created_at",
    )

    @property
    def upvotes(self) -> int:
        return sum(1 for v in self.votes if v.direction == "up")

    @property
    def downvotes(self) -> int:
        return sum(1 for v in self.votes if v.direction == "down")


class IssueVote(Base):
    __tablename__ = "issue_votes"

    issue_id: Mapped[str] = mapped_column(String, ForeignKey("issues.id"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    direction: Mapped[str] = mapped_column(String, nullable=False)  # "up" or "down"
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    issue: Mapped[Issue] = relationship("Issue", back_populates="votes")


class IssueComment(Base):
    __tablename__ = "issue_comments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    issue_id: Mapped[str] = mapped_column(
        String, ForeignKey("issues.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    user_name: Mapped[str | None] = mapped_column(String, nullable=True)
    text: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    issue: Mapped[Issue] = relationship("Issue", back_populates="comments")
