from fastapi import APIRouter

from app.schemas.common import MessageResponse

router = APIRouter(tags=["Root"])


@router.get("", response_model=MessageResponse, summary="API welcome message")
async def welcome() -> MessageResponse:
    return MessageResponse(message="Welcome to OP-Blog API")
