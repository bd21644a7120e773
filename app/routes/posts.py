"""
OP-Blog API: Post Routes
========================

Create and image update take multipart/form-data with an `image` file
part (image/*, at most 1MB). Every other write takes JSON.

    POST   /posts                     authenticated
    GET    /posts                     public   ?text=&category=&pageNumber=
    GET    /posts/{id}                public   (with comments)
    PATCH  /posts/{id}                owner
    PATCH  /posts/update-image/{id}   owner
    PATCH  /posts/like/{id}           authenticated (toggle)
    DELETE /posts/{id}                owner or admin
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_user, page_number, path_id
from app.database import get_db_session
from app.exceptions import ValidationError
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.post import (
    PostCreateForm,
    PostDeletedResponse,
    PostListResponse,
    PostResponse,
    PostUpdateRequest,
)
from app.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])

_errors = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("", status_code=201, response_model=PostResponse, responses=_errors, summary="Create a post")
async def create_post(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    image: Optional[UploadFile] = File(None, description="Image file, at most 1MB"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    """
    Form fields are validated through PostCreateForm so that multipart
    errors share the JSON error shape.
    """
    fields = {"title": title, "description": description, "categoryId": category_id}
    try:
        form = PostCreateForm.model_validate({k: v for k, v in fields.items() if v is not None})
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc.errors(), part="body")

    return await post_service.create_post(db, user, form, image)


@router.get("", response_model=PostListResponse, summary="List posts")
async def list_posts(
    text: Optional[str] = Query(None, description="Case-insensitive substring of the title"),
    category: Optional[str] = Query(None, description="Category id or title"),
    page: int = Depends(page_number),
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    posts, total = await post_service.list_posts(db, page=page, text=text, category=category)
    return PostListResponse(posts=posts, total_pages=total)


@router.get("/{id}", response_model=PostResponse, responses=_errors, summary="Get a post with its comments")
async def get_post(
    post_id: uuid.UUID = Depends(path_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.get_post(db, post_id)


@router.patch("/update-image/{id}", response_model=PostResponse, responses=_errors, summary="Replace a post's image")
async def update_post_image(
    post_id: uuid.UUID = Depends(path_id),
    image: Optional[UploadFile] = File(None, description="Image file, at most 1MB"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.update_image(db, post_id, user, image)


@router.patch("/like/{id}", response_model=PostResponse, responses=_errors, summary="Toggle a like")
async def toggle_like(
    post_id: uuid.UUID = Depends(path_id),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.toggle_like(db, post_id, user)


@router.patch("/{id}", response_model=PostResponse, responses=_errors, summary="Update a post")
async def update_post(
    data: PostUpdateRequest,
    post_id: uuid.UUID = Depends(path_id),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    return await post_service.update_post(db, post_id, user, data)


@router.delete("/{id}", response_model=PostDeletedResponse, responses=_errors, summary="Delete a post")
async def delete_post(
    post_id: uuid.UUID = Depends(path_id),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PostDeletedResponse:
    await post_service.delete_post(db, post_id, user)
    return PostDeletedResponse(post_id=post_id, message="post has been deleted successfully")
