"""
OP-Blog API: Category Service
=============================

Duplicate Titles:
    Uniqueness is decided by the `uq_categories_title_lower` index alone.
    The insert is flushed inside try/except; a duplicate-key IntegrityError
    rolls the transaction back and becomes ConflictError (409). Concurrent
    creates with the same title therefore produce one 201 and N 409s, with
    no pre-check, lock or retry in the application.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ConflictError, NotFoundError
from app.models.category import Category
from app.models.post import Post
from app.models.user import User
from app.services.post_service import total_pages

logger = logging.getLogger(__name__)


class CategoryService:

    async def create_category(self, db: AsyncSession, user: User, title: str) -> Category:
        category = Category(title=title, user_id=user.id)
        db.add(category)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            logger.info("Duplicate category title rejected: %r", title)
            raise ConflictError("Category already exists")

        logger.info("Category %s created by admin %s", category.id, user.id)
        return category

    async def list_categories(
        self, db: AsyncSession, page: int = 1, search: Optional[str] = None
    ) -> Tuple[List[Category], int]:
        per_page = settings.categories_per_page
        filters = [Category.title.icontains(search, autoescape=True)] if search else []

        count = (
            await db.execute(select(func.count()).select_from(Category).where(*filters))
        ).scalar_one()
        result = await db.execute(
            select(Category)
            .where(*filters)
            .order_by(Category.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total_pages(count, per_page)

    async def count_categories(self, db: AsyncSession) -> int:
        return (await db.execute(select(func.count()).select_from(Category))).scalar_one()

    async def delete_category(self, db: AsyncSession, category_id: uuid.UUID) -> uuid.UUID:
        category = await db.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")

        # Posts stay; they just lose their category
        await db.execute(
            update(Post).where(Post.category_id == category.id).values(category_id=None)
        )
        await db.execute(delete(Category).where(Category.id == category.id))
        logger.info("Category %s deleted", category.id)
        return category.id


category_service = CategoryService()
