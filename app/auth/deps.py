"""
OP-Blog API: Authorization Dependency Chain
===========================================

    unauthenticated → credential-checked → principal-loaded → authorized

Every step is a FastAPI dependency. Path ids are parsed by their own
dependencies, declared ahead of the auth dependencies in each route, so a
malformed id is answered with 400 before any credential is inspected.
The `pageNumber` query parameter is coerced rather than rejected.
Ownership of posts and comments needs the loaded resource and is checked
in the services instead.
"""

import logging
import math
import uuid
from typing import List, Optional

import jwt
from fastapi import Depends, Path, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import decode_access_token
from app.database import get_db_session
from app.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from app.models.user import User

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


# ── Path ids ──────────────────────────────────────────────────────────────


def _parse_id(value: str, name: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise ValidationError.for_field("params", name, "Invalid id")


def path_id(id: str = Path(...)) -> uuid.UUID:
    return _parse_id(id, "id")


def path_user_id(user_id: str = Path(...)) -> uuid.UUID:
    return _parse_id(user_id, "userId")


def path_post_id(post_id: str = Path(...)) -> uuid.UUID:
    return _parse_id(post_id, "postId")


# ── Paging ────────────────────────────────────────────────────────────────

MAX_PAGE_NUMBER = 1_000_000_000


def page_number(
    values: Optional[List[str]] = Query(None, alias="pageNumber", description="1-based page; anything else reads as 1"),
) -> int:
    """First `pageNumber` value, floored. Missing, non-numeric or below 1 means page 1."""
    if not values:
        return 1
    try:
        number = float(values[0].strip())
    except ValueError:
        return 1
    if not math.isfinite(number) or number < 1:
        return 1
    return min(math.floor(number), MAX_PAGE_NUMBER)


# ── Principal ─────────────────────────────────────────────────────────────


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = uuid.UUID(str(payload["id"]))
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        logger.info("Rejected access token: %s", type(exc).__name__)
        raise AuthenticationError("Invalid token")

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError("Not allowed, only admin")
    return user


async def require_self(
    subject_id: uuid.UUID = Depends(path_id),
    user: User = Depends(get_current_user),
) -> User:
    if user.id != subject_id:
        raise AuthorizationError("Not allowed, only user himself")
    return user


async def require_self_or_admin(
    subject_id: uuid.UUID = Depends(path_id),
    user: User = Depends(get_current_user),
) -> User:
    if user.id != subject_id and not user.is_admin:
        raise AuthorizationError("Not allowed, only user himself")
    return user
