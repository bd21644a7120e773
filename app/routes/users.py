"""
OP-Blog API: User Routes
========================

Static paths (/profile, /me, /count, /profile/profile-photo-upload) are
declared before /profile/{id}.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import (
    get_current_user,
    page_number,
    path_id,
    require_admin,
    require_self,
    require_self_or_admin,
)
from app.database import get_db_session
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.post import UserProfileResponse
from app.schemas.user import (
    MeResponse,
    ProfilePhotoResponse,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)
from app.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])

_auth_errors = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


@router.get("/profile", response_model=UserListResponse, responses=_auth_errors, summary="List users (admin)")
async def list_users(
    username: Optional[str] = Query(None, max_length=100),
    page: int = Depends(page_number),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    users, total = await user_service.list_users(db, page=page, username=username)
    return UserListResponse(users=[UserResponse.from_user(u) for u in users], total_pages=total)


@router.get("/me", response_model=MeResponse, responses=_auth_errors, summary="Current user")
async def get_me(user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(result=UserResponse.from_user(user))


@router.get("/count", response_model=int, responses=_auth_errors, summary="Number of users (admin)")
async def count_users(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> int:
    return await user_service.count_users(db)


@router.post(
    "/profile/profile-photo-upload",
    response_model=ProfilePhotoResponse,
    responses={400: {"model": ErrorResponse}, **_auth_errors, 500: {"model": ErrorResponse}},
    summary="Upload a profile photo",
)
async def upload_profile_photo(
    image: Optional[UploadFile] = File(None, description="Image file, at most 1MB"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfilePhotoResponse:
    photo = await user_service.upload_profile_photo(db, user, image)
    return ProfilePhotoResponse(message="your profile photo uploaded successfully", profile_photo=photo)


@router.get(
    "/profile/{id}",
    response_model=UserProfileResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Public profile with posts",
)
async def get_profile(
    user_id: uuid.UUID = Depends(path_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfileResponse:
    return await user_service.get_profile(db, user_id)


@router.patch(
    "/profile/{id}",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}, **_auth_errors},
    summary="Update own profile",
)
async def update_profile(
    data: UpdateUserRequest,
    user: User = Depends(require_self),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    updated = await user_service.update_user(db, user, data)
    return UserResponse.from_user(updated)


@router.delete(
    "/profile/{id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, **_auth_errors, 500: {"model": ErrorResponse}},
    summary="Delete an account and everything it owns",
)
async def delete_profile(
    user_id: uuid.UUID = Depends(path_id),
    actor: User = Depends(require_self_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.delete_user(db, user_id)
    return MessageResponse(message="your profile has been deleted")
