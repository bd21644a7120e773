"""
OP-Blog API: Post Service
=========================

What:  Post CRUD, listing with search and pagination, image lifecycle
       and the like toggle.
Who:   Called by routes/posts.py; UserService reuses the likes loader.

Like Toggle:
    ┌───────────────────────────────┐  rowcount 1   ┌──────────┐
    │ DELETE post_likes (post,user) │──────────────▶│  unliked │
    └───────────────────────────────┘               └──────────┘
                   │ rowcount 0
                   ▼
    ┌───────────────────────────────────────────┐   ┌──────────┐
    │ INSERT post_likes ... ON CONFLICT NOTHING │──▶│   liked  │
    └───────────────────────────────────────────┘   └──────────┘

    Both statements are single atomic store operations and the pair is the
    primary key, so racing toggles can reorder but never duplicate a like.

Image Ordering:
    create:  upload, then insert (upload failure leaves no post)
    update:  upload new, destroy old, then persist
    delete:  destroy image first (failure leaves everything in place)
"""

import logging
import math
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.exceptions import AuthorizationError, NotFoundError
from app.models.category import Category
from app.models.comment import Comment
from app.models.post import Post, post_likes
from app.models.user import User
from app.schemas.post import PostCreateForm, PostResponse, PostUpdateRequest
from app.services.image_service import image_service

logger = logging.getLogger(__name__)


def total_pages(count: int, per_page: int) -> int:
    return math.ceil(count / per_page)


class PostService:

    # ── Loading helpers ───────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, post_id: uuid.UUID) -> Post:
        result = await db.execute(
            select(Post)
            .where(Post.id == post_id)
            .options(selectinload(Post.user), selectinload(Post.category))
            .execution_options(populate_existing=True)
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def likes_for(
        self, db: AsyncSession, post_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, List[uuid.UUID]]:
        ids = list(post_ids)
        likes: Dict[uuid.UUID, List[uuid.UUID]] = defaultdict(list)
        if not ids:
            return likes
        rows = await db.execute(
            select(post_likes.c.post_id, post_likes.c.user_id)
            .where(post_likes.c.post_id.in_(ids))
            .order_by(post_likes.c.created_at)
        )
        for post_id, user_id in rows:
            likes[post_id].append(user_id)
        return likes

    async def _respond(self, db: AsyncSession, post: Post) -> PostResponse:
        likes = await self.likes_for(db, [post.id])
        return PostResponse.from_post(post, likes=likes[post.id])

    async def _require_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        if await db.get(Category, category_id) is None:
            raise NotFoundError("Category not found")

    # ── Create / read ─────────────────────────────────────────────────────

    async def create_post(
        self,
        db: AsyncSession,
        user: User,
        form: PostCreateForm,
        image: Optional[UploadFile],
    ) -> PostResponse:
        content = await image_service.read_image(image, required=False)
        await self._require_category(db, form.category_id)

        post = Post(
            title=form.title,
            description=form.description,
            user_id=user.id,
            category_id=form.category_id,
        )
        if content is not None:
            uploaded = await image_service.upload(content)
            post.image_url = uploaded.url
            post.image_public_id = uploaded.public_id

        db.add(post)
        await db.flush()
        logger.info("Post %s created by user %s", post.id, user.id)
        return await self._respond(db, await self._load(db, post.id))

    def _filters(self, text: Optional[str], category: Optional[str]) -> list:
        filters = []
        if text:
            filters.append(Post.title.icontains(text, autoescape=True))
        if category:
            try:
                filters.append(Post.category_id == uuid.UUID(category))
            except ValueError:
                filters.append(
                    Post.category_id.in_(
                        select(Category.id).where(func.lower(Category.title) == category.strip().lower())
                    )
                )
        return filters

    async def list_posts(
        self,
        db: AsyncSession,
        page: int = 1,
        text: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Tuple[List[PostResponse], int]:
        """
        Newest first, `posts_per_page` per page.

        `text` is a literal, case-insensitive substring of the title.
        `category` is a category id or a category title.
        """
        per_page = settings.posts_per_page
        filters = self._filters(text, category)

        count = (
            await db.execute(select(func.count()).select_from(Post).where(*filters))
        ).scalar_one()

        result = await db.execute(
            select(Post)
            .where(*filters)
            .options(selectinload(Post.user), selectinload(Post.category))
            .order_by(Post.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        posts = result.scalars().all()
        likes = await self.likes_for(db, [p.id for p in posts])

        return [PostResponse.from_post(p, likes=likes[p.id]) for p in posts], total_pages(count, per_page)

    async def get_post(self, db: AsyncSession, post_id: uuid.UUID) -> PostResponse:
        post = await self._load(db, post_id)
        comments = await db.execute(
            select(Comment)
            .where(Comment.post_id == post.id)
            .options(selectinload(Comment.user))
            .order_by(Comment.created_at.desc())
        )
        likes = await self.likes_for(db, [post.id])
        return PostResponse.from_post(post, likes=likes[post.id], comments=comments.scalars().all())

    async def count_posts(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count()).select_from(Post))).scalar_one()

    # ── Update ────────────────────────────────────────────────────────────

    async def _owned(self, db: AsyncSession, post_id: uuid.UUID, user: User) -> Post:
        post = await self._load(db, post_id)
        if post.user_id != user.id:
            raise AuthorizationError("Access denied, you are not allowed")
        return post

    async def update_post(
        self, db: AsyncSession, post_id: uuid.UUID, user: User, data: PostUpdateRequest
    ) -> PostResponse:
        post = await self._owned(db, post_id, user)

        if data.category_id is not None:
            await self._require_category(db, data.category_id)
            post.category_id = data.category_id
        if data.title is not None:
            post.title = data.title
        if data.description is not None:
            post.description = data.description

        await db.flush()
        return await self._respond(db, await self._load(db, post.id))

    async def update_image(
        self, db: AsyncSession, post_id: uuid.UUID, user: User, image: Optional[UploadFile]
    ) -> PostResponse:
        content = await image_service.read_image(image)
        post = await self._owned(db, post_id, user)

        uploaded = await image_service.upload(content)
        await image_service.destroy(post.image_public_id)

        post.image_url = uploaded.url
        post.image_public_id = uploaded.public_id
        await db.flush()
        logger.info("Post %s image replaced", post.id)
        return await self._respond(db, post)

    async def toggle_like(self, db: AsyncSession, post_id: uuid.UUID, user: User) -> PostResponse:
        post = await self._load(db, post_id)

        removed = await db.execute(
            delete(post_likes).where(
                post_likes.c.post_id == post.id,
                post_likes.c.user_id == user.id,
            )
        )
        if removed.rowcount == 0:
            insert = postgresql.insert if db.get_bind().dialect.name == "postgresql" else sqlite.insert
            await db.execute(
                insert(post_likes)
                .values(post_id=post.id, user_id=user.id)
                .on_conflict_do_nothing(index_elements=["post_id", "user_id"])
            )

        return await self._respond(db, post)

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_post(self, db: AsyncSession, post_id: uuid.UUID, user: User) -> None:
        post = await self._load(db, post_id)
        if post.user_id != user.id and not user.is_admin:
            raise AuthorizationError("Access denied, forbidden")

        await image_service.destroy(post.image_public_id)

        await db.execute(delete(Comment).where(Comment.post_id == post.id))
        await db.execute(delete(post_likes).where(post_likes.c.post_id == post.id))
        await db.execute(delete(Post).where(Post.id == post.id))
        logger.info("Post %s deleted by user %s", post.id, user.id)


post_service = PostService()
