"""
OP-Blog API: User and Auth Schemas
==================================

Request bodies sanitize and validate their own fields; a client-supplied
`isAdmin` is not a declared field and is dropped during validation.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BeforeValidator, EmailStr, Field, StringConstraints

from app.config import settings
from app.models.user import User
from app.schemas.common import APIModel, ImageRef
from app.validators import check_password_strength, sanitize_text

Username = Annotated[
    str,
    BeforeValidator(sanitize_text),
    StringConstraints(strip_whitespace=True, min_length=2, max_length=100),
]

StrongPassword = Annotated[
    str,
    StringConstraints(max_length=128),
    AfterValidator(check_password_strength),
]


def _normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


Email = Annotated[EmailStr, BeforeValidator(_normalize_email)]


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(APIModel):
    username: Username
    email: Email
    password: StrongPassword


class LoginRequest(APIModel):
    email: Email
    password: str = Field(min_length=1, max_length=128)


class EmailRequest(APIModel):
    email: Email


class NewPasswordRequest(APIModel):
    password: StrongPassword


class UpdateUserRequest(APIModel):
    username: Optional[Username] = None
    bio: Optional[Annotated[str, BeforeValidator(sanitize_text), StringConstraints(max_length=1000)]] = None
    password: Optional[StrongPassword] = None


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(APIModel):
    id: uuid.UUID = Field(alias="_id")
    username: str
    email: str
    bio: Optional[str] = None
    profile_photo: ImageRef
    is_admin: bool
    is_account_verified: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            bio=user.bio,
            profile_photo=ImageRef(
                url=user.profile_photo_url or settings.default_profile_photo_url,
                public_id=user.profile_photo_public_id,
            ),
            is_admin=user.is_admin,
            is_account_verified=user.is_account_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class MeResponse(APIModel):
    status: bool = True
    result: UserResponse


class UserListResponse(APIModel):
    users: List[UserResponse]
    total_pages: int


class LoginResponse(APIModel):
    token: str
    user: UserResponse


class ProfilePhotoResponse(APIModel):
    message: str
    profile_photo: ImageRef
