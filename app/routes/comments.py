import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_user, page_number, path_id, path_post_id, require_admin
from app.database import get_db_session
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.post import (
    CommentCreateRequest,
    CommentListResponse,
    CommentResponse,
    CommentUpdateRequest,
)
from app.services.comment_service import comment_service

router = APIRouter(prefix="/comments", tags=["Comments"])

_errors = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post("", status_code=201, response_model=CommentResponse, responses=_errors, summary="Comment on a post")
async def create_comment(
    data: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    comment = await comment_service.create_comment(db, user, data)
    return CommentResponse.from_comment(comment)


@router.get("", response_model=CommentListResponse, responses=_errors, summary="All comments (admin)")
async def list_comments(
    page: int = Depends(page_number),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    comments, total = await comment_service.list_comments(db, page=page)
    return CommentListResponse(
        comments=[CommentResponse.from_comment(c) for c in comments],
        total_pages=total,
    )


@router.get("/post/{post_id}", response_model=List[CommentResponse], summary="Comments of a post, newest first")
async def list_post_comments(
    post_id: uuid.UUID = Depends(path_post_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[CommentResponse]:
    comments = await comment_service.list_post_comments(db, post_id)
    return [CommentResponse.from_comment(c) for c in comments]


@router.patch(
    "/{id}",
    status_code=201,
    response_model=CommentResponse,
    responses=_errors,
    summary="Edit own comment",
)
async def update_comment(
    data: CommentUpdateRequest,
    comment_id: uuid.UUID = Depends(path_id),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    comment = await comment_service.update_comment(db, comment_id, user, data.text)
    return CommentResponse.from_comment(comment)


@router.delete("/{id}", response_model=MessageResponse, responses=_errors, summary="Delete a comment")
async def delete_comment(
    comment_id: uuid.UUID = Depends(path_id),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await comment_service.delete_comment(db, comment_id, user)
    return MessageResponse(message="comment has been deleted")
