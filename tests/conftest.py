"""
OP-Blog API: Test Configuration (conftest.py)
=============================================

What:  Shared fixtures for the whole suite.
How:   Settings are pointed at a throwaway SQLite file before anything from
       `app` is imported; tables are created and dropped around every test.
       The mail and image-host singletons are patched with AsyncMock so no
       test talks to SMTP or Cloudinary.

Fixture Overview:
    Autouse (every test):
    ├── database:      create_all / drop_all on the test engine
    ├── mail_mock:     MailService.send → AsyncMock (inspect to/subject/html)
    └── image_mock:    ImageService.upload / destroy / delete_many → AsyncMock

    On request:
    ├── test_client:   httpx AsyncClient over ASGITransport
    ├── make_user / make_category / make_post / make_comment / make_token
    ├── auth_header:   Authorization header for a user
    └── db_scalar:     run one statement in a short-lived session
"""

import itertools
import os
import re
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

# Must run before any app import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["CLIENT_DOMAIN"] = "http://localhost:5173"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.auth.security import create_access_token, generate_link_token, hash_password
from app.database import Base, async_session_factory, engine
from app.models import Category, Comment, Post, User, VerificationToken
from app.schemas.common import ImageRef
from app.services.image_service import image_service
from app.services.mail_service import mail_service

STRONG_PASSWORD = "Str0ng!Passw0rd"

_emails = itertools.count(1)


# ══════════════════════════════════════════════════════════════════════════
# Autouse Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(autouse=True)
def mail_mock():
    """Patched MailService.send; call args are (to, subject, html)."""
    with patch.object(mail_service, "send", new=AsyncMock()) as send:
        yield send


@pytest.fixture(autouse=True)
def image_mock():
    """Patched image host; uploads return numbered fake images."""
    counter = itertools.count(1)

    async def fake_upload(content):
        n = next(counter)
        return ImageRef(url=f"https://images.example.com/opblog/img-{n}.png", public_id=f"opblog/img-{n}")

    with patch.object(image_service, "upload", new=AsyncMock(side_effect=fake_upload)) as upload, \
         patch.object(image_service, "destroy", new=AsyncMock()) as destroy, \
         patch.object(image_service, "delete_many", new=AsyncMock()) as delete_many:
        yield SimpleNamespace(upload=upload, destroy=destroy, delete_many=delete_many)


# ══════════════════════════════════════════════════════════════════════════
# Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client():
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

async def _save(record):
    async with async_session_factory() as session:
        session.add(record)
        await session.commit()
        return record


@pytest.fixture
def make_user():
    async def _make(
        username: str = "blogger",
        email: str = None,
        password: str = STRONG_PASSWORD,
        is_admin: bool = False,
        verified: bool = True,
        profile_photo_public_id: str = None,
    ) -> User:
        return await _save(User(
            username=username,
            email=email or f"user{next(_emails)}@example.com",
            password=hash_password(password),
            is_admin=is_admin,
            is_account_verified=verified,
            profile_photo_public_id=profile_photo_public_id,
        ))
    return _make


@pytest.fixture
def make_category():
    async def _make(title: str = "Programming", user: User = None) -> Category:
        return await _save(Category(title=title, user_id=user.id if user else None))
    return _make


@pytest.fixture
def make_post():
    async def _make(
        user: User,
        category: Category = None,
        title: str = "A post title",
        description: str = "A description that is long enough",
        image_public_id: str = None,
    ) -> Post:
        return await _save(Post(
            title=title,
            description=description,
            user_id=user.id,
            category_id=category.id if category else None,
            image_url=f"https://images.example.com/{image_public_id}.png" if image_public_id else None,
            image_public_id=image_public_id,
        ))
    return _make


@pytest.fixture
def make_comment():
    async def _make(user: User, post: Post, text: str = "Nice post") -> Comment:
        return await _save(Comment(post_id=post.id, user_id=user.id, text=text, username=user.username))
    return _make


@pytest.fixture
def make_token():
    async def _make(user: User, token: str = None) -> str:
        record = await _save(VerificationToken(user_id=user.id, token=token or generate_link_token()))
        return record.token
    return _make


@pytest.fixture
def auth_header():
    def _header(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.is_admin)}"}
    return _header


@pytest.fixture
def db_scalar():
    async def _scalar(statement):
        async with async_session_factory() as session:
            return (await session.execute(statement)).scalar()
    return _scalar


@pytest.fixture
def mailed_link(mail_mock):
    """Returns (user_id, token) parsed from the last mailed link."""
    def _link() -> tuple:
        html = mail_mock.call_args.args[2]
        match = re.search(r"/([0-9a-f-]{36})/(?:verify/)?([0-9a-f]{64})", html)
        assert match, html
        return match.group(1), match.group(2)
    return _link
