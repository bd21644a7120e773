"""
OP-Blog API: Comment Service
============================

Access rules:
    create   any authenticated user, on an existing post
    update   author only; anyone else gets 404
    delete   author or admin; anyone else gets 403
"""

import logging
import uuid
from typing import List, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.exceptions import AuthorizationError, NotFoundError
from app.models.comment import Comment
from app.models.post import Post
from app.models.user import User
from app.schemas.post import CommentCreateRequest
from app.services.post_service import total_pages

logger = logging.getLogger(__name__)


class CommentService:

    async def _load(self, db: AsyncSession, comment_id: uuid.UUID) -> Comment:
        result = await db.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .options(selectinload(Comment.user))
            .execution_options(populate_existing=True)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    async def create_comment(
        self, db: AsyncSession, user: User, data: CommentCreateRequest
    ) -> Comment:
        if await db.get(Post, data.post_id) is None:
            raise NotFoundError("Post not found")

        comment = Comment(
            post_id=data.post_id,
            user_id=user.id,
            text=data.text,
            username=user.username,
        )
        db.add(comment)
        await db.flush()
        logger.info("Comment %s added to post %s", comment.id, data.post_id)
        return await self._load(db, comment.id)

    async def list_comments(self, db: AsyncSession, page: int = 1) -> Tuple[List[Comment], int]:
        per_page = settings.comments_per_page
        count = (await db.execute(select(func.count()).select_from(Comment))).scalar_one()
        result = await db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .order_by(Comment.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total_pages(count, per_page)

    async def list_post_comments(self, db: AsyncSession, post_id: uuid.UUID) -> List[Comment]:
        result = await db.execute(
            select(Comment)
            .where(Comment.post_id == post_id)
            .options(selectinload(Comment.user))
            .order_by(Comment.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_comments(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count()).select_from(Comment))).scalar_one()

    async def update_comment(
        self, db: AsyncSession, comment_id: uuid.UUID, user: User, text: str
    ) -> Comment:
        comment = await self._load(db, comment_id)
        if comment.user_id != user.id:
            raise NotFoundError("Access denied, only user himself can edit his comment")

        comment.text = text
        await db.flush()
        return await self._load(db, comment.id)

    async def delete_comment(self, db: AsyncSession, comment_id: uuid.UUID, user: User) -> None:
        comment = await self._load(db, comment_id)
        if comment.user_id != user.id and not user.is_admin:
            raise AuthorizationError("Access denied, not allowed")

        await db.execute(delete(Comment).where(Comment.id == comment.id))
        logger.info("Comment %s deleted by user %s", comment.id, user.id)


comment_service = CommentService()
