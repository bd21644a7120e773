"""
OP-Blog API: Password Reset Service
===================================

Flow:
    1. POST reset-password-link  → token issued (or reused), committed, mailed
    2. GET  reset-password/{u}/{t} → link check, read only
    3. POST reset-password/{u}/{t} → token redeemed, password re-hashed,
                                      account marked verified
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import hash_password
from app.exceptions import BadRequestError, NotFoundError
from app.models.user import User
from app.services.mail_service import mail_service
from app.services.token_service import INVALID_LINK, token_service

logger = logging.getLogger(__name__)


class PasswordService:

    async def send_reset_link(self, db: AsyncSession, email: str) -> str:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User with given email does not exist!")

        token = await token_service.get_or_create(db, user.id)
        await db.commit()

        await mail_service.send_password_reset(user.email, user.id, token)
        logger.info("Password reset link sent for user %s", user.id)
        return "Password reset link sent to your email, check your inbox"

    async def check_reset_link(self, db: AsyncSession, user_id: uuid.UUID, token: str) -> str:
        user = await db.get(User, user_id)
        if user is None or not await token_service.exists(db, user.id, token):
            raise BadRequestError(INVALID_LINK)
        return "Valid url"

    async def reset_password(
        self, db: AsyncSession, user_id: uuid.UUID, token: str, password: str
    ) -> str:
        user = await db.get(User, user_id)
        if user is None:
            raise BadRequestError(INVALID_LINK)

        await token_service.redeem(db, user.id, token)
        user.password = hash_password(password)
        user.is_account_verified = True
        await db.flush()

        logger.info("Password reset for user %s", user.id)
        return "Passsword has been reset successfully, please log in"


password_service = PasswordService()
