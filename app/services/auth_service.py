"""
OP-Blog API: Auth Service
=========================

What:  Registration, login and account verification.
Who:   Called by routes/auth.py.

Ordering with mail:
    The user and token rows are committed before the verification mail
    goes out. A mail failure therefore answers 500 while the account and
    its token stay in place; logging in again re-sends the same link.
"""

import logging
import uuid
from typing import Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import create_access_token, hash_password, verify_password
from app.exceptions import BadRequestError
from app.models.user import User
from app.schemas.user import LoginRequest, RegisterRequest
from app.services.mail_service import mail_service
from app.services.token_service import INVALID_LINK, token_service

logger = logging.getLogger(__name__)


class AuthService:

    async def register(self, db: AsyncSession, data: RegisterRequest) -> str:
        """
        Create an unverified account and mail its verification link.

        The very first account is made admin; any admin flag in the payload
        was already dropped by the request schema.
        """
        existing = await db.execute(select(User.id).where(User.email == data.email))
        if existing.scalar_one_or_none() is not None:
            raise BadRequestError("User already exists")

        user_count = (await db.execute(select(func.count()).select_from(User))).scalar_one()

        user = User(
            username=data.username,
            email=data.email,
            password=hash_password(data.password),
            is_admin=user_count == 0,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Same email registered concurrently
            await db.rollback()
            raise BadRequestError("User already exists")

        token = await token_service.get_or_create(db, user.id)
        await db.commit()
        logger.info("Registered user %s (admin=%s)", user.id, user.is_admin)

        await mail_service.send_verification(user.email, user.id, token)
        return "We sent to you an email, please verify your email address"

    async def login(self, db: AsyncSession, data: LoginRequest) -> Tuple[str, User]:
        result = await db.execute(select(User).where(User.email == data.email))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(data.password, user.password):
            raise BadRequestError("Invalid email or password")

        if not user.is_account_verified:
            token = await token_service.get_or_create(db, user.id)
            await db.commit()
            await mail_service.send_verification(user.email, user.id, token)
            raise BadRequestError(
                "A verification link has been sent to your email, please verify your account"
            )

        logger.info("User %s logged in", user.id)
        return create_access_token(user.id, user.is_admin), user

    async def verify_account(self, db: AsyncSession, user_id: uuid.UUID, token: str) -> None:
        user = await db.get(User, user_id)
        if user is None:
            raise BadRequestError(INVALID_LINK)

        await token_service.redeem(db, user.id, token)
        user.is_account_verified = True
        await db.flush()
        logger.info("User %s verified their account", user.id)


auth_service = AuthService()
