"""Chat API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_completion_client, get_current_user, get_db, validate_token
from app.domains.chat.service import ChatService
from app.domains.journal.summarizer import CompletionClient
from app.schemas.base import ResponseSchema
from app.schemas.chat import ChatRequest
from models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/chat",
    tags=["chat"],
    dependencies=[Depends(validate_token)],
)


@router.post("/message", response_model=ResponseSchema, status_code=status.HTTP_201_CREATED)
async def send_chat_message(
    chat_request: ChatRequest = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    completion_client: CompletionClient = Depends(get_completion_client),
):
    """Send a message to the companion and get its reply.

    Args:
        chat_request: Message and the conversation it belongs to, if any
        current_user: Current authenticated user
        db: Database session
        completion_client: Text-generation client

    Returns:
        Both stored turns and the ephemeral conversation id
    """
    service = ChatService(db, completion_client)
    result = await service.send_message(
        user_id=current_user.id,
        text=chat_request.message,
        ephemeral_conversation_id=chat_request.ephemeral_conversation_id,
    )

    return ResponseSchema(
        status="success",
        message="Message sent successfully",
        data=result.model_dump(mode="json"),
    )
