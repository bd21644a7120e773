"""
OP-Blog API: Category Model
===========================

Uniqueness:
    Titles are unique case-insensitively. The guarantee lives in the
    functional unique index `uq_categories_title_lower` on lower(title):
    when several requests insert the same title at once, the store admits
    exactly one and rejects the rest with a duplicate-key IntegrityError,
    which CategoryService translates into ConflictError (409).
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Trimmed, sanitized title as entered",
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Admin who created the category",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, title='{self.title}')>"


Index("uq_categories_title_lower", func.lower(Category.title), unique=True)
