"""
Tests for registration, login, logout, account verification and the
authorization dependency chain.
"""

import asyncio
import uuid

import pytest
from sqlalchemy import func, select

from app.exceptions import MailDeliveryError
from app.models import User, VerificationToken

from conftest import STRONG_PASSWORD

API = "/api/v1"


def _register_body(email="writer@example.com", username="writer", password=STRONG_PASSWORD, **extra):
    return {"username": username, "email": email, "password": password, **extra}


class TestRegister:
    """Tests for POST /auth/register."""

    @pytest.mark.asyncio
    async def test_first_user_becomes_admin(self, test_client, db_scalar):
        response = await test_client.post(f"{API}/auth/register", json=_register_body())

        assert response.status_code == 201
        assert response.json()["message"] == "We sent to you an email, please verify your email address"
        assert await db_scalar(select(User.is_admin).where(User.email == "writer@example.com")) is True

    @pytest.mark.asyncio
    async def test_later_users_are_not_admin_even_if_they_ask(self, test_client, make_user, db_scalar):
        await make_user()
        response = await test_client.post(
            f"{API}/auth/register",
            json=_register_body(email="sneaky@example.com", isAdmin=True),
        )

        assert response.status_code == 201
        assert await db_scalar(select(User.is_admin).where(User.email == "sneaky@example.com")) is False

    @pytest.mark.asyncio
    async def test_new_account_is_unverified_and_mailed(self, test_client, mail_mock, db_scalar):
        await test_client.post(f"{API}/auth/register", json=_register_body())

        assert await db_scalar(select(User.is_account_verified)) is False
        to, subject, html = mail_mock.call_args.args
        assert to == "writer@example.com"
        assert subject == "Verify Your Email"
        assert "http://localhost:5173/users/" in html

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, test_client, make_user):
        await make_user(email="taken@example.com")
        response = await test_client.post(
            f"{API}/auth/register", json=_register_body(email="Taken@Example.com")
        )

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"

    @pytest.mark.asyncio
    async def test_weak_password_is_a_field_error(self, test_client):
        response = await test_client.post(f"{API}/auth/register", json=_register_body(password="weakpass"))

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert "password" in body["errors"]["body"]
        assert "uppercase" in body["errors"]["body"]["password"]

    @pytest.mark.asyncio
    async def test_invalid_email_is_a_field_error(self, test_client):
        response = await test_client.post(f"{API}/auth/register", json=_register_body(email="not-an-email"))

        assert response.status_code == 400
        assert "email" in response.json()["errors"]["body"]

    @pytest.mark.asyncio
    async def test_username_markup_is_stripped(self, test_client, db_scalar):
        await test_client.post(
            f"{API}/auth/register",
            json=_register_body(username="<script>alert(1)</script><b>Bob</b>"),
        )

        assert await db_scalar(select(User.username)) == "Bob"

    @pytest.mark.asyncio
    async def test_mail_failure_keeps_user_and_token(self, test_client, mail_mock, db_scalar):
        mail_mock.side_effect = MailDeliveryError()
        response = await test_client.post(f"{API}/auth/register", json=_register_body())

        assert response.status_code == 500
        assert await db_scalar(select(func.count()).select_from(User)) == 1
        assert await db_scalar(select(func.count()).select_from(VerificationToken)) == 1


class TestVerifyAccount:
    """Tests for GET /auth/{user_id}/verify/{token}."""

    @pytest.mark.asyncio
    async def test_mailed_link_verifies_account(self, test_client, mailed_link, db_scalar):
        await test_client.post(f"{API}/auth/register", json=_register_body())
        user_id, token = mailed_link()

        response = await test_client.get(f"{API}/auth/{user_id}/verify/{token}")

        assert response.status_code == 200
        assert response.json() == {"message": "Your account verified", "success": True}
        assert await db_scalar(select(User.is_account_verified)) is True
        assert await db_scalar(select(func.count()).select_from(VerificationToken)) == 0

    @pytest.mark.asyncio
    async def test_link_works_only_once(self, test_client, mailed_link):
        await test_client.post(f"{API}/auth/register", json=_register_body())
        user_id, token = mailed_link()

        first = await test_client.get(f"{API}/auth/{user_id}/verify/{token}")
        second = await test_client.get(f"{API}/auth/{user_id}/verify/{token}")

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["message"] == "Invalid link"

    @pytest.mark.asyncio
    async def test_concurrent_redeems_succeed_once(self, test_client, mailed_link):
        await test_client.post(f"{API}/auth/register", json=_register_body())
        user_id, token = mailed_link()

        responses = await asyncio.gather(
            *(test_client.get(f"{API}/auth/{user_id}/verify/{token}") for _ in range(4))
        )

        assert sorted(r.status_code for r in responses) == [200, 400, 400, 400]

    @pytest.mark.asyncio
    async def test_wrong_token_is_invalid_link(self, test_client, make_user, make_token):
        user = await make_user(verified=False)
        await make_token(user)

        response = await test_client.get(f"{API}/auth/{user.id}/verify/{'0' * 64}")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid link"

    @pytest.mark.asyncio
    async def test_unknown_user_is_invalid_link(self, test_client):
        response = await test_client.get(f"{API}/auth/{uuid.uuid4()}/verify/{'a' * 64}")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid link"

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, test_client):
        response = await test_client.get(f"{API}/auth/not-an-id/verify/{'a' * 64}")

        assert response.status_code == 400
        assert response.json()["errors"] == {"params": {"userId": "Invalid id"}}


class TestLogin:
    """Tests for POST /auth/login."""

    @pytest.mark.asyncio
    async def test_login_returns_token_and_sets_cookies(self, test_client, make_user):
        user = await make_user(email="reader@example.com")
        response = await test_client.post(
            f"{API}/auth/login", json={"email": "reader@example.com", "password": STRONG_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token"]
        assert body["user"]["_id"] == str(user.id)
        assert "password" not in body["user"]

        cookies = response.headers.get_list("set-cookie")
        auth_cookie = next(c for c in cookies if c.startswith("authToken="))
        assert "HttpOnly" in auth_cookie
        assert "Secure" not in auth_cookie
        assert any(c.startswith("userInfo=") for c in cookies)

    @pytest.mark.asyncio
    async def test_email_is_case_insensitive(self, test_client, make_user):
        await make_user(email="reader@example.com")
        response = await test_client.post(
            f"{API}/auth/login", json={"email": "READER@example.com", "password": STRONG_PASSWORD}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, test_client, make_user):
        await make_user(email="reader@example.com")
        wrong = await test_client.post(
            f"{API}/auth/login", json={"email": "reader@example.com", "password": "Wr0ng!Password"}
        )
        unknown = await test_client.post(
            f"{API}/auth/login", json={"email": "nobody@example.com", "password": STRONG_PASSWORD}
        )

        assert wrong.status_code == unknown.status_code == 400
        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_unverified_login_resends_same_link(self, test_client, make_user, make_token, mailed_link):
        user = await make_user(email="late@example.com", verified=False)
        token = await make_token(user)

        response = await test_client.post(
            f"{API}/auth/login", json={"email": "late@example.com", "password": STRONG_PASSWORD}
        )

        assert response.status_code == 400
        assert response.json()["message"] == (
            "A verification link has been sent to your email, please verify your account"
        )
        assert mailed_link() == (str(user.id), token)

    @pytest.mark.asyncio
    async def test_unverified_login_without_token_issues_one(self, test_client, make_user, db_scalar):
        await make_user(email="late@example.com", verified=False)
        await test_client.post(
            f"{API}/auth/login", json={"email": "late@example.com", "password": STRONG_PASSWORD}
        )

        assert await db_scalar(select(func.count()).select_from(VerificationToken)) == 1


class TestLogout:
    """Tests for POST /auth/logout/{id}."""

    @pytest.mark.asyncio
    async def test_logout_clears_cookies(self, test_client, make_user, auth_header):
        user = await make_user()
        response = await test_client.post(f"{API}/auth/logout/{user.id}", headers=auth_header(user))

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        cookies = response.headers.get_list("set-cookie")
        assert any(c.startswith("authToken=") and "Max-Age=0" in c for c in cookies)
        assert any(c.startswith("userInfo=") and "Max-Age=0" in c for c in cookies)

    @pytest.mark.asyncio
    async def test_logout_for_someone_else_forbidden(self, test_client, make_user, auth_header):
        user = await make_user()
        other = await make_user(username="other")
        response = await test_client.post(f"{API}/auth/logout/{other.id}", headers=auth_header(user))

        assert response.status_code == 403
        assert response.json()["message"] == "Not allowed, only user himself"


class TestAuthorizationChain:
    """Tests for the credential → principal → authorization dependencies."""

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.get(f"{API}/users/me")

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"

    @pytest.mark.asyncio
    async def test_forged_token(self, test_client):
        response = await test_client.get(f"{API}/users/me", headers={"Authorization": "Bearer not.a.jwt"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, test_client, auth_header):
        ghost = User(id=uuid.uuid4(), is_admin=False)
        response = await test_client.get(f"{API}/users/me", headers=auth_header(ghost))

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_admin_only_route(self, test_client, make_user, auth_header):
        user = await make_user()
        response = await test_client.get(f"{API}/users/count", headers=auth_header(user))

        assert response.status_code == 403
        assert response.json()["message"] == "Not allowed, only admin"

    @pytest.mark.asyncio
    async def test_admin_flag_comes_from_database(self, test_client, make_user):
        from app.auth.security import create_access_token

        user = await make_user()
        forged_claim = create_access_token(user.id, True)
        response = await test_client.get(
            f"{API}/users/count", headers={"Authorization": f"Bearer {forged_claim}"}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_malformed_id_rejected_before_credentials(self, test_client):
        response = await test_client.delete(f"{API}/users/profile/123")

        assert response.status_code == 400
        assert response.json()["errors"] == {"params": {"id": "Invalid id"}}
