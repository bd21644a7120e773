from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_admin
from app.database import get_db_session
from app.models.user import User
from app.schemas.admin import AdminInfoResponse
from app.schemas.common import ErrorResponse
from app.services.admin_service import admin_service

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/info",
    response_model=AdminInfoResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Dashboard counts (admin)",
)
async def admin_info(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminInfoResponse:
    return await admin_service.info(db)
