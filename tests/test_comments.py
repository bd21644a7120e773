"""
Tests for comments and the admin dashboard counts.
"""

import pytest
from sqlalchemy import func, select

from app.models import Comment

API = "/api/v1/comments"


class TestCreateComment:
    """Tests for POST /comments."""

    @pytest.mark.asyncio
    async def test_comment_snapshots_username(self, test_client, make_user, make_post, auth_header):
        user = await make_user(username="chatty")
        post = await make_post(user)

        response = await test_client.post(
            API, json={"postId": str(post.id), "text": "Great read!"}, headers=auth_header(user)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["text"] == "Great read!"
        assert body["username"] == "chatty"
        assert body["postId"] == str(post.id)
        assert body["user"]["_id"] == str(user.id)

    @pytest.mark.asyncio
    async def test_unknown_post(self, test_client, make_user, auth_header):
        user = await make_user()
        response = await test_client.post(
            API,
            json={"postId": "00000000-0000-0000-0000-000000000000", "text": "hello"},
            headers=auth_header(user),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Post not found"

    @pytest.mark.asyncio
    async def test_empty_text(self, test_client, make_user, make_post, auth_header):
        user = await make_user()
        post = await make_post(user)

        response = await test_client.post(
            API, json={"postId": str(post.id), "text": "<b></b>"}, headers=auth_header(user)
        )

        assert response.status_code == 400
        assert "text" in response.json()["errors"]["body"]

    @pytest.mark.asyncio
    async def test_requires_login(self, test_client):
        response = await test_client.post(API, json={"postId": "x", "text": "hello"})

        assert response.status_code == 401


class TestListComments:
    """Tests for GET /comments and GET /comments/post/{post_id}."""

    @pytest.mark.asyncio
    async def test_admin_lists_all_paginated(self, test_client, make_user, make_post, make_comment, auth_header):
        admin = await make_user(is_admin=True)
        post = await make_post(admin)
        for i in range(7):
            await make_comment(admin, post, text=f"comment {i}")

        response = await test_client.get(API, params={"pageNumber": 2}, headers=auth_header(admin))

        assert response.status_code == 200
        body = response.json()
        assert [c["text"] for c in body["comments"]] == ["comment 1", "comment 0"]
        assert body["totalPages"] == 2

    @pytest.mark.asyncio
    async def test_listing_all_is_admin_only(self, test_client, make_user, auth_header):
        user = await make_user()
        response = await test_client.get(API, headers=auth_header(user))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_post_comments_are_public(self, test_client, make_user, make_post, make_comment):
        user = await make_user()
        post = await make_post(user)
        other = await make_post(user)
        await make_comment(user, post, text="old")
        await make_comment(user, post, text="new")
        await make_comment(user, other, text="elsewhere")

        response = await test_client.get(f"{API}/post/{post.id}")

        assert response.status_code == 200
        assert [c["text"] for c in response.json()] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_post_comments_malformed_id(self, test_client):
        response = await test_client.get(f"{API}/post/nope")

        assert response.status_code == 400
        assert response.json()["errors"] == {"params": {"postId": "Invalid id"}}


class TestUpdateComment:
    """Tests for PATCH /comments/{id}."""

    @pytest.mark.asyncio
    async def test_author_edits(self, test_client, make_user, make_post, make_comment, auth_header):
        user = await make_user()
        comment = await make_comment(user, await make_post(user))

        response = await test_client.patch(f"{API}/{comment.id}", json={"text": "edited"}, headers=auth_header(user))

        assert response.status_code == 201
        assert response.json()["text"] == "edited"

    @pytest.mark.asyncio
    async def test_non_author_gets_not_found(self, test_client, make_user, make_post, make_comment, auth_header):
        author = await make_user()
        admin = await make_user(is_admin=True)
        comment = await make_comment(author, await make_post(author))

        response = await test_client.patch(f"{API}/{comment.id}", json={"text": "edited"}, headers=auth_header(admin))

        assert response.status_code == 404
        assert response.json()["message"] == "Access denied, only user himself can edit his comment"


class TestDeleteComment:
    """Tests for DELETE /comments/{id}."""

    @pytest.mark.asyncio
    async def test_author_deletes(self, test_client, make_user, make_post, make_comment, auth_header, db_scalar):
        user = await make_user()
        comment = await make_comment(user, await make_post(user))

        response = await test_client.delete(f"{API}/{comment.id}", headers=auth_header(user))

        assert response.status_code == 200
        assert response.json()["message"] == "comment has been deleted"
        assert await db_scalar(select(func.count()).select_from(Comment)) == 0

    @pytest.mark.asyncio
    async def test_admin_deletes_any(self, test_client, make_user, make_post, make_comment, auth_header):
        author = await make_user()
        admin = await make_user(is_admin=True)
        comment = await make_comment(author, await make_post(author))

        response = await test_client.delete(f"{API}/{comment.id}", headers=auth_header(admin))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_stranger_forbidden(self, test_client, make_user, make_post, make_comment, auth_header):
        author = await make_user()
        stranger = await make_user()
        comment = await make_comment(author, await make_post(author))

        response = await test_client.delete(f"{API}/{comment.id}", headers=auth_header(stranger))

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied, not allowed"

    @pytest.mark.asyncio
    async def test_unknown_comment(self, test_client, make_user, auth_header):
        user = await make_user()
        response = await test_client.delete(
            f"{API}/00000000-0000-0000-0000-000000000000", headers=auth_header(user)
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Comment not found"


class TestAdminInfo:
    """Tests for GET /admin/info."""

    @pytest.mark.asyncio
    async def test_counts(self, test_client, make_user, make_category, make_post, make_comment, auth_header):
        admin = await make_user(is_admin=True)
        user = await make_user()
        await make_category("One")
        post = await make_post(user)
        await make_post(user)
        await make_comment(user, post)

        response = await test_client.get("/api/v1/admin/info", headers=auth_header(admin))

        assert response.status_code == 200
        assert response.json() == {"users": 2, "posts": 2, "categories": 1, "comments": 1}

    @pytest.mark.asyncio
    async def test_admin_only(self, test_client, make_user, auth_header):
        user = await make_user()
        response = await test_client.get("/api/v1/admin/info", headers=auth_header(user))

        assert response.status_code == 403
        assert response.json()["message"] == "Not allowed, only admin"
