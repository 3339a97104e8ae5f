"""Message API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, validate_token
from app.domains.message.service import MessageService
from app.exceptions.base import NotFoundError
from app.schemas.base import ResponseSchema
from app.schemas.message import MessageCreate, MessageResponse, OpenConversationListResponse
from models.user import User


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/messages",
    tags=["messages"],
    dependencies=[Depends(validate_token)],
)


@router.post("/", response_model=ResponseSchema, status_code=201)
async def append_message(
    message_data: MessageCreate = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Store one chat turn under an ephemeral conversation id."""
    service = MessageService(db)
    message = await service.append_message(
        user_id=current_user.id,
        ephemeral_conversation_id=message_data.ephemeral_conversation_id,
        sender=message_data.sender,
        text=message_data.text,
        timestamp=message_data.timestamp,
    )

    return ResponseSchema(
        status="success",
        message="Message saved successfully",
        data=MessageResponse.model_validate(message).model_dump(mode="json"),
    )


@router.get("/conversations", response_model=OpenConversationListResponse)
async def list_open_conversations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List conversations that have not been finalized yet."""
    service = MessageService(db)
    conversations = await service.list_open_conversations(current_user.id)
    return OpenConversationListResponse(conversations=conversations, total=len(conversations))


@router.get("/conversations/{ephemeral_conversation_id}", response_model=ResponseSchema)
async def get_open_conversation(
    ephemeral_conversation_id: str = Path(..., min_length=1, max_length=64),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get every message of an open conversation, oldest first."""
    service = MessageService(db)
    messages = await service.get_conversation_messages(current_user.id, ephemeral_conversation_id)
    if not messages:
        raise NotFoundError("Conversation not found")

    return ResponseSchema(
        status="success",
        message="Conversation retrieved successfully",
        data={
            "ephemeral_conversation_id": ephemeral_conversation_id,
            "messages": [MessageResponse.model_validate(m).model_dump(mode="json") for m in messages],
        },
    )
