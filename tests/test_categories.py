"""
Tests for categories, including the duplicate-title race.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from app.models import Category, Post

API = "/api/v1/categories"


class TestCreateCategory:
    """Tests for POST /categories."""

    @pytest.mark.asyncio
    async def test_admin_creates_category(self, test_client, make_user, auth_header):
        admin = await make_user(is_admin=True)
        response = await test_client.post(API, json={"title": "Music"}, headers=auth_header(admin))

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Music"
        assert body["user"] == str(admin.id)
        assert "_id" in body

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, test_client, make_user, auth_header):
        user = await make_user()
        response = await test_client.post(API, json={"title": "Music"}, headers=auth_header(user))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_duplicate_title_is_case_insensitive(self, test_client, make_user, make_category, auth_header):
        admin = await make_user(is_admin=True)
        await make_category("Music")

        response = await test_client.post(API, json={"title": "MUSIC"}, headers=auth_header(admin))

        assert response.status_code == 409
        assert response.json()["message"] == "Category already exists"

    @pytest.mark.asyncio
    async def test_ampersand_title_stored_as_typed(self, test_client, make_user, auth_header):
        admin = await make_user(is_admin=True)

        created = await test_client.post(API, json={"title": "Tips & Tricks"}, headers=auth_header(admin))
        encoded = await test_client.post(API, json={"title": "tips &amp; tricks"}, headers=auth_header(admin))

        assert created.status_code == 201
        assert created.json()["title"] == "Tips & Tricks"
        assert encoded.status_code == 409

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_create_one(self, test_client, make_user, auth_header, db_scalar):
        admin = await make_user(is_admin=True)
        headers = auth_header(admin)

        responses = await asyncio.gather(
            *(test_client.post(API, json={"title": "Racing"}, headers=headers) for _ in range(8))
        )

        codes = sorted(r.status_code for r in responses)
        assert codes == [201] + [409] * 7
        assert await db_scalar(select(func.count()).select_from(Category)) == 1

    @pytest.mark.asyncio
    async def test_blank_title(self, test_client, make_user, auth_header):
        admin = await make_user(is_admin=True)
        response = await test_client.post(API, json={"title": "  "}, headers=auth_header(admin))

        assert response.status_code == 400
        assert "title" in response.json()["errors"]["body"]


class TestListCategories:
    """Tests for GET /categories."""

    @pytest.mark.asyncio
    async def test_public_list_with_search(self, test_client, make_category):
        for title in ("Python", "Cython", "Rust"):
            await make_category(title)

        response = await test_client.get(API, params={"search": "YTH"})

        assert response.status_code == 200
        body = response.json()
        assert sorted(c["title"] for c in body["categories"]) == ["Cython", "Python"]
        assert body["totalPages"] == 1

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, test_client, make_category):
        await make_category("100% Pure")
        await make_category("Plain")

        response = await test_client.get(API, params={"search": "%"})

        assert [c["title"] for c in response.json()["categories"]] == ["100% Pure"]

    @pytest.mark.asyncio
    async def test_pagination(self, test_client, make_category):
        for i in range(12):
            await make_category(f"Topic {i}")

        second = await test_client.get(API, params={"pageNumber": 2})

        assert len(second.json()["categories"]) == 2
        assert second.json()["totalPages"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["2.9", ["2", "1"]])
    async def test_page_number_floored_and_first_value_used(self, test_client, make_category, value):
        for i in range(12):
            await make_category(f"Topic {i}")

        response = await test_client.get(API, params={"pageNumber": value})

        assert response.status_code == 200
        assert len(response.json()["categories"]) == 2

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, test_client, make_category):
        await make_category("Only")

        response = await test_client.get(API, params={"pageNumber": "1e30"})

        assert response.status_code == 200
        assert response.json()["categories"] == []


class TestDeleteCategory:
    """Tests for DELETE /categories/{id}."""

    @pytest.mark.asyncio
    async def test_delete_keeps_posts(
        self, test_client, make_user, make_category, make_post, auth_header, db_scalar
    ):
        admin = await make_user(is_admin=True)
        category = await make_category("Doomed")
        post = await make_post(admin, category=category)

        response = await test_client.delete(f"{API}/{category.id}", headers=auth_header(admin))

        assert response.status_code == 200
        assert response.json() == {
            "categoryId": str(category.id),
            "message": "category has been deleted successfully",
        }
        assert await db_scalar(select(func.count()).select_from(Post)) == 1
        assert await db_scalar(select(Post.category_id).where(Post.id == post.id)) is None

    @pytest.mark.asyncio
    async def test_unknown_category(self, test_client, make_user, auth_header):
        admin = await make_user(is_admin=True)
        response = await test_client.delete(
            f"{API}/00000000-0000-0000-0000-000000000000", headers=auth_header(admin)
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Category not found"
