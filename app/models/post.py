"""
OP-Blog API: Post Model and Likes Relation
==========================================

What:  ORM model for `posts` and the `post_likes` association table.

Likes:
    A like is a row in `post_likes` keyed by (post_id, user_id). The
    composite primary key makes duplicate membership impossible no matter
    how many toggles race; PostService toggles with a conditional DELETE
    followed, when nothing was deleted, by INSERT ... ON CONFLICT DO NOTHING.

Relationships are declared lazy="raise": async sessions cannot lazy-load,
so every query that needs the author or category says so with
selectinload().
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.category import Category
from app.models.user import User


post_likes = Table(
    "post_likes",
    Base.metadata,
    Column(
        "post_id",
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Index("idx_post_likes_user_id", "user_id"),
)


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    # Sanitized HTML subset: <p> and <strong> only
    description: Mapped[str] = mapped_column(Text, nullable=False)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Deleting a category keeps its posts; the reference becomes NULL
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, default=None)
    image_public_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)

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

    user: Mapped[User] = relationship(lazy="raise")
    category: Mapped[Optional[Category]] = relationship(lazy="raise")

    __table_args__ = (
        Index("idx_posts_created_at", "created_at"),
        Index("idx_posts_user_id", "user_id"),
        Index("idx_posts_category_id", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title}', user_id={self.user_id})>"
