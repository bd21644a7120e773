"""
OP-Blog API: Verification Token Model
=====================================

One-time tokens for account verification and password reset. A token is
looked up by (user_id, token) and deleted on redemption, so a link works
at most once.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class VerificationToken(Base):
    __tablename__ = "verification_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # 32 random bytes, hex encoded
    token: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("uq_verification_tokens_user_token", "user_id", "token", unique=True),
    )

    def __repr__(self) -> str:
        return f"<VerificationToken(id={self.id}, user_id={self.user_id})>"
