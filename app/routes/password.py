"""
OP-Blog API: Password Reset Routes
==================================

    POST /password/reset-password-link
    GET  /password/reset-password/{user_id}/{token}
    POST /password/reset-password/{user_id}/{token}
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import path_user_id
from app.database import get_db_session
from app.schemas.common import ErrorResponse, MessageResponse, SuccessMessageResponse
from app.schemas.user import EmailRequest, NewPasswordRequest
from app.services.password_service import password_service

router = APIRouter(prefix="/password", tags=["Password"])


@router.post(
    "/reset-password-link",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Mail a password reset link",
)
async def send_reset_link(
    data: EmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    message = await password_service.send_reset_link(db, data.email)
    return MessageResponse(message=message)


@router.get(
    "/reset-password/{user_id}/{token}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Check a password reset link",
)
async def check_reset_link(
    token: str,
    user_id: uuid.UUID = Depends(path_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    message = await password_service.check_reset_link(db, user_id, token)
    return MessageResponse(message=message)


@router.post(
    "/reset-password/{user_id}/{token}",
    response_model=SuccessMessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Set a new password using a reset link",
)
async def reset_password(
    token: str,
    data: NewPasswordRequest,
    user_id: uuid.UUID = Depends(path_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessMessageResponse:
    message = await password_service.reset_password(db, user_id, token, data.password)
    return SuccessMessageResponse(message=message)
