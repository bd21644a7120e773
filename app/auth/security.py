"""
OP-Blog API: Password Hashing and Access Tokens
===============================================

Passwords are hashed with passlib's pbkdf2_sha256. Access tokens are
HS256 JWTs (PyJWT) carrying the user id and admin flag:

    {"id": "<uuid>", "isAdmin": false, "iat": ..., "exp": ...}

The admin flag in the token is informational; authorization always
re-reads the principal from the database.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext

from app.config import settings

_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password must not be blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Unrecognized or malformed hash
        return False


def create_access_token(user_id: Any, is_admin: bool) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "id": str(user_id),
        "isAdmin": bool(is_admin),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.jwt_expire_days)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises jwt.InvalidTokenError (including ExpiredSignatureError) on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def generate_link_token() -> str:
    """Opaque one-time token for verification and reset links."""
    return secrets.token_hex(32)
