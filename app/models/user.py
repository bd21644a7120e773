"""
OP-Blog API: User Model
=======================

What:  ORM model for the `users` table.

Table Design:
    - UUID primary key: non-sequential, safe to expose in URLs
    - email: unique index; stored lower-cased by the auth service so the
      index enforces case-insensitive uniqueness
    - password: passlib hash, never serialized
    - profile photo: image host URL plus its public id (needed to destroy it)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    username: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name (sanitized, tags stripped)",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Login email, lower-cased",
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Password hash (pbkdf2_sha256)",
    )

    bio: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    profile_photo_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        default=None,
        comment="Image host URL; NULL means the default avatar",
    )

    profile_photo_public_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        comment="Image host public id, used to destroy the photo",
    )

    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        comment="Granted to the first registered user only",
    )

    is_account_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("uq_users_email", "email", unique=True),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', admin={self.is_admin})>"
