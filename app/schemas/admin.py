from app.schemas.common import APIModel


class AdminInfoResponse(APIModel):
    """Row counts for the admin dashboard."""

    users: int
    posts: int
    categories: int
    comments: int
