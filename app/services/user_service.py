"""
OP-Blog API: User Service
=========================

What:  Profiles, admin listing, profile photo and account deletion.
Who:   Called by routes/users.py and routes/admin.py.

Account Deletion Order:
    1. collect image publicIds (every post image + the profile photo)
    2. bulk-delete them on the image host; a failure aborts with 500 and
       no rows are touched
    3. delete comments written by the user and comments on their posts
    4. delete likes given by the user and likes on their posts
    5. delete posts, tokens, then the user
"""

import logging
import uuid
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.security import hash_password
from app.config import settings
from app.exceptions import NotFoundError
from app.models.category import Category
from app.models.comment import Comment
from app.models.post import Post, post_likes
from app.models.user import User
from app.models.verification_token import VerificationToken
from app.schemas.common import ImageRef
from app.schemas.post import PostResponse, UserProfileResponse
from app.schemas.user import UpdateUserRequest, UserResponse
from app.services.image_service import image_service
from app.services.post_service import post_service, total_pages

logger = logging.getLogger(__name__)


class UserService:

    async def _get(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_profile(self, db: AsyncSession, user_id: uuid.UUID) -> UserProfileResponse:
        user = await self._get(db, user_id)

        result = await db.execute(
            select(Post)
            .where(Post.user_id == user.id)
            .options(selectinload(Post.user), selectinload(Post.category))
            .order_by(Post.created_at.desc())
        )
        posts = result.scalars().all()
        likes = await post_service.likes_for(db, [p.id for p in posts])

        return UserProfileResponse(
            **UserResponse.from_user(user).model_dump(),
            posts=[PostResponse.from_post(p, likes=likes[p.id]) for p in posts],
        )

    async def list_users(
        self, db: AsyncSession, page: int = 1, username: Optional[str] = None
    ) -> Tuple[List[User], int]:
        per_page = settings.users_per_page
        filters = [User.username.icontains(username, autoescape=True)] if username else []

        count = (
            await db.execute(select(func.count()).select_from(User).where(*filters))
        ).scalar_one()
        result = await db.execute(
            select(User)
            .where(*filters)
            .order_by(User.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total_pages(count, per_page)

    async def count_users(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count()).select_from(User))).scalar_one()

    async def update_user(self, db: AsyncSession, user: User, data: UpdateUserRequest) -> User:
        if data.username is not None:
            user.username = data.username
        if data.bio is not None:
            user.bio = data.bio
        if data.password is not None:
            user.password = hash_password(data.password)
        await db.flush()
        logger.info("User %s updated their profile", user.id)
        return user

    async def upload_profile_photo(
        self, db: AsyncSession, user: User, image: Optional[UploadFile]
    ) -> ImageRef:
        content = await image_service.read_image(image)
        uploaded = await image_service.upload(content)
        await image_service.destroy(user.profile_photo_public_id)

        user.profile_photo_url = uploaded.url
        user.profile_photo_public_id = uploaded.public_id
        await db.flush()
        return uploaded

    async def delete_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        user = await self._get(db, user_id)

        rows = (
            await db.execute(select(Post.id, Post.image_public_id).where(Post.user_id == user.id))
        ).all()
        post_ids = [row.id for row in rows]

        await image_service.delete_many(
            [row.image_public_id for row in rows] + [user.profile_photo_public_id]
        )

        await db.execute(
            delete(Comment).where(or_(Comment.user_id == user.id, Comment.post_id.in_(post_ids)))
        )
        await db.execute(
            delete(post_likes).where(
                or_(post_likes.c.user_id == user.id, post_likes.c.post_id.in_(post_ids))
            )
        )
        await db.execute(delete(Post).where(Post.user_id == user.id))
        await db.execute(delete(VerificationToken).where(VerificationToken.user_id == user.id))
        await db.execute(update(Category).where(Category.user_id == user.id).values(user_id=None))
        await db.execute(delete(User).where(User.id == user.id))

        logger.info("User %s deleted with %d posts", user.id, len(post_ids))


user_service = UserService()
