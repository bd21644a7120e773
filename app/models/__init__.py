# Importing the package registers every table on Base.metadata
from app.models.user import User
from app.models.category import Category
from app.models.post import Post, post_likes
from app.models.comment import Comment
from app.models.verification_token import VerificationToken

__all__ = ["User", "Category", "Post", "post_likes", "Comment", "VerificationToken"]
