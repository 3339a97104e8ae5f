"""Chat schemas for request/response serialization."""

from datetime import datetime

from pydantic import Field

from .base import BaseSchema
from .message import MessageResponse


class ChatRequest(BaseSchema):
    """Schema for chat request."""

    ephemeral_conversation_id: str | None = Field(
        None, max_length=64, description="Conversation in progress, null to start a new one"
    )
    message: str = Field(..., min_length=1, max_length=10000, description="User message")


class ChatResponse(BaseSchema):
    """Schema for chat response."""

    ephemeral_conversation_id: str
    user_message: MessageResponse
    assistant_message: MessageResponse
    timestamp: datetime
