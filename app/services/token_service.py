"""
OP-Blog API: Verification Token Service
=======================================

Token lifecycle:  issued → redeemed | abandoned

    issue:   reuse the user's outstanding token, or create one
    check:   exact (user_id, token) match, read only
    redeem:  conditional DELETE of that row; the caller applies its side
             effect only when exactly one row was deleted, inside the same
             transaction

Because the row is gone before the side effect runs, a second redemption
of the same link (sequential or concurrent) always finds nothing and is
rejected with 400 "Invalid link".
"""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import generate_link_token
from app.exceptions import BadRequestError
from app.models.verification_token import VerificationToken

logger = logging.getLogger(__name__)

INVALID_LINK = "Invalid link"


class TokenService:

    async def get_or_create(self, db: AsyncSession, user_id: uuid.UUID) -> str:
        result = await db.execute(
            select(VerificationToken.token)
            .where(VerificationToken.user_id == user_id)
            .order_by(VerificationToken.created_at.desc())
            .limit(1)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            return existing

        record = VerificationToken(user_id=user_id, token=generate_link_token())
        db.add(record)
        await db.flush()
        logger.info("Issued verification token for user %s", user_id)
        return record.token

    async def exists(self, db: AsyncSession, user_id: uuid.UUID, token: str) -> bool:
        result = await db.execute(
            select(VerificationToken.id).where(
                VerificationToken.user_id == user_id,
                VerificationToken.token == token,
            )
        )
        return result.scalar_one_or_none() is not None

    async def redeem(self, db: AsyncSession, user_id: uuid.UUID, token: str) -> None:
        """
        Consume a token or raise BadRequestError("Invalid link").

        Must be called before the side effect, in the caller's transaction.
        """
        result = await db.execute(
            delete(VerificationToken).where(
                VerificationToken.user_id == user_id,
                VerificationToken.token == token,
            )
        )
        if result.rowcount != 1:
            logger.info("Rejected token redemption for user %s", user_id)
            raise BadRequestError(INVALID_LINK)


token_service = TokenService()
