"""
OP-Blog API: Auth Routes
========================

    POST /auth/register                   public
    POST /auth/login                      public, sets authToken + userInfo cookies
    POST /auth/logout/{id}                user himself, clears both cookies
    GET  /auth/{user_id}/verify/{token}   public, one-time link

Cookies are always HttpOnly; Secure is added in production only.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import path_user_id, require_self
from app.config import settings
from app.database import get_db_session
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse, SuccessMessageResponse
from app.schemas.user import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

AUTH_COOKIE = "authToken"
USER_COOKIE = "userInfo"


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "path": "/",
    }


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Register a new account",
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    Creates an unverified account and mails a verification link.

    The first account ever registered becomes the admin.
    """
    message = await auth_service.register(db, data)
    return MessageResponse(message=message)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Log in and receive an access token",
)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    token, user = await auth_service.login(db, data)
    body = LoginResponse(token=token, user=UserResponse.from_user(user))

    max_age = settings.jwt_expire_days * 24 * 60 * 60
    response.set_cookie(AUTH_COOKIE, token, max_age=max_age, **_cookie_options())
    response.set_cookie(
        USER_COOKIE,
        body.user.model_dump_json(by_alias=True),
        max_age=max_age,
        **_cookie_options(),
    )
    return body


@router.post(
    "/logout/{id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Log out and clear the auth cookies",
)
async def logout(
    response: Response,
    user: User = Depends(require_self),
) -> MessageResponse:
    response.delete_cookie(AUTH_COOKIE, **_cookie_options())
    response.delete_cookie(USER_COOKIE, **_cookie_options())
    logger.info("User %s logged out", user.id)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/{user_id}/verify/{token}",
    response_model=SuccessMessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Verify an account from the mailed link",
)
async def verify_account(
    token: str,
    user_id: uuid.UUID = Depends(path_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessMessageResponse:
    await auth_service.verify_account(db, user_id, token)
    return SuccessMessageResponse(message="Your account verified")
