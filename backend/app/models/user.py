from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base


class User(Base):
    __tablename__ = "users"

    # Identity-provider uid, not generated here
    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    role: Mapped[str] = mapped_column(String, nullable=False, default="citizen")  # or "admin"
    # Timestamps are stored as ISO 8601 strings (not datetime columns) throughout
    # the schema. This keeps SQLite and JSON output consistent.
    created_at: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
