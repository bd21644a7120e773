import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import page_number, path_id, require_admin
from app.database import get_db_session
from app.models.user import User
from app.schemas.category import (
    CategoryCreateRequest,
    CategoryDeletedResponse,
    CategoryListResponse,
    CategoryResponse,
)
from app.schemas.common import ErrorResponse
from app.services.category_service import category_service

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"description": "A category with this title already exists", "model": ErrorResponse},
    },
    summary="Create a category (admin)",
)
async def create_category(
    data: CategoryCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryResponse:
    category = await category_service.create_category(db, admin, data.title)
    return CategoryResponse.from_category(category)


@router.get("", response_model=CategoryListResponse, summary="List categories")
async def list_categories(
    search: Optional[str] = Query(None, description="Case-insensitive substring of the title"),
    page: int = Depends(page_number),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryListResponse:
    categories, total = await category_service.list_categories(db, page=page, search=search)
    return CategoryListResponse(
        categories=[CategoryResponse.from_category(c) for c in categories],
        total_pages=total,
    )


@router.delete(
    "/{id}",
    response_model=CategoryDeletedResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete a category (admin); its posts keep existing",
)
async def delete_category(
    category_id: uuid.UUID = Depends(path_id),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryDeletedResponse:
    deleted_id = await category_service.delete_category(db, category_id)
    return CategoryDeletedResponse(category_id=deleted_id, message="category has been deleted successfully")
