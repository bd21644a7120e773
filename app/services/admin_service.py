from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.admin import AdminInfoResponse
from app.services.category_service import category_service
from app.services.comment_service import comment_service
from app.services.post_service import post_service
from app.services.user_service import user_service


class AdminService:

    async def info(self, db: AsyncSession) -> AdminInfoResponse:
        """Row counts for the admin dashboard."""
        return AdminInfoResponse(
            users=await user_service.count_users(db),
            posts=await post_service.count_posts(db),
            categories=await category_service.count_categories(db),
            comments=await comment_service.count_comments(db),
        )


admin_service = AdminService()
