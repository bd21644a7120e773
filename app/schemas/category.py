import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, Field, StringConstraints

from app.models.category import Category
from app.schemas.common import APIModel
from app.validators import sanitize_text


class CategoryCreateRequest(APIModel):
    title: Annotated[
        str,
        BeforeValidator(sanitize_text),
        StringConstraints(strip_whitespace=True, min_length=1, max_length=200),
    ]


class CategoryBrief(APIModel):
    """Category as embedded in a post (`categoryId`)."""

    id: uuid.UUID = Field(alias="_id")
    title: str


class CategoryResponse(CategoryBrief):
    user: Optional[uuid.UUID] = Field(default=None, description="Id of the admin who created it")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            title=category.title,
            user=category.user_id,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


class CategoryListResponse(APIModel):
    categories: List[CategoryResponse]
    total_pages: int


class CategoryDeletedResponse(APIModel):
    category_id: uuid.UUID
    message: str
