"""
OP-Blog API: Post and Comment Schemas
=====================================

Posts embed their author (`user`), their category (`categoryId`, populated
with id and title) and the list of user ids that liked them. The detail
endpoint additionally embeds the post's comments, newest first.
"""

import uuid
from datetime import datetime
from typing import Annotated, Iterable, List, Optional

from pydantic import BeforeValidator, Field, StringConstraints

from app.config import settings
from app.models.comment import Comment
from app.models.post import Post
from app.schemas.category import CategoryBrief
from app.schemas.common import APIModel, ImageRef
from app.schemas.user import UserResponse
from app.validators import sanitize_rich_text, sanitize_text

PostTitle = Annotated[
    str,
    BeforeValidator(sanitize_rich_text),
    StringConstraints(strip_whitespace=True, min_length=2, max_length=200),
]

PostDescription = Annotated[
    str,
    BeforeValidator(sanitize_rich_text),
    StringConstraints(strip_whitespace=True, min_length=10),
]

CommentText = Annotated[
    str,
    BeforeValidator(sanitize_text),
    StringConstraints(strip_whitespace=True, min_length=1, max_length=2000),
]


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class PostCreateForm(APIModel):
    """Text fields of the multipart create form (the image is a separate part)."""

    title: PostTitle
    description: PostDescription
    category_id: uuid.UUID


class PostUpdateRequest(APIModel):
    title: Optional[PostTitle] = None
    description: Optional[PostDescription] = None
    category_id: Optional[uuid.UUID] = None


class CommentCreateRequest(APIModel):
    post_id: uuid.UUID
    text: CommentText


class CommentUpdateRequest(APIModel):
    text: CommentText


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class CommentResponse(APIModel):
    id: uuid.UUID = Field(alias="_id")
    post_id: uuid.UUID
    user: Optional[UserResponse] = None
    text: str
    username: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment, with_user: bool = True) -> "CommentResponse":
        return cls(
            id=comment.id,
            post_id=comment.post_id,
            user=UserResponse.from_user(comment.user) if with_user else None,
            text=comment.text,
            username=comment.username,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class CommentListResponse(APIModel):
    comments: List[CommentResponse]
    total_pages: int


class PostResponse(APIModel):
    id: uuid.UUID = Field(alias="_id")
    title: str
    description: str
    user: UserResponse
    category_id: Optional[CategoryBrief] = None
    image: ImageRef
    likes: List[uuid.UUID] = Field(default_factory=list)
    comments: Optional[List[CommentResponse]] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(
        cls,
        post: Post,
        likes: Iterable[uuid.UUID] = (),
        comments: Optional[Iterable[Comment]] = None,
    ) -> "PostResponse":
        """Expects post.user and post.category to be eagerly loaded."""
        category = post.category
        return cls(
            id=post.id,
            title=post.title,
            description=post.description,
            user=UserResponse.from_user(post.user),
            category_id=CategoryBrief(id=category.id, title=category.title) if category else None,
            image=ImageRef(
                url=post.image_url or settings.default_post_image_url,
                public_id=post.image_public_id,
            ),
            likes=list(likes),
            comments=[CommentResponse.from_comment(c) for c in comments] if comments is not None else None,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostListResponse(APIModel):
    posts: List[PostResponse]
    total_pages: int


class PostDeletedResponse(APIModel):
    post_id: uuid.UUID
    message: str


class UserProfileResponse(UserResponse):
    """Public profile: the user plus their posts, newest first."""

    posts: List[PostResponse] = Field(default_factory=list)
