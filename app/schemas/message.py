"""Message schemas for request/response serialization."""

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator

from models.base import as_naive_utc
from models.message import MessageRole

from .base import BaseModelSchema, BaseSchema


class TranscriptEntry(BaseSchema):
    """One turn of a conversation transcript, as fed to the prompt builder."""

    sender: MessageRole
    text: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)


class MessageCreate(BaseSchema):
    """Schema for appending a chat turn."""

    ephemeral_conversation_id: str = Field(..., min_length=1, max_length=64)
    sender: MessageRole = Field(default=MessageRole.USER, description="Message role")
    text: str = Field(..., min_length=1, max_length=10000, description="Message content")
    timestamp: datetime | None = Field(None, description="Client timestamp, defaults to now")

    @field_validator("ephemeral_conversation_id")
    @classmethod
    def validate_ephemeral_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Ephemeral conversation id cannot be empty")
        return v

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        return as_naive_utc(v) if v else v


class MessageResponse(BaseModelSchema):
    """Schema for a stored chat turn."""

    user_id: UUID
    sender: MessageRole
    text: str
    timestamp: datetime
    ephemeral_conversation_id: str | None = None
    conversation_id: UUID | None = None


class OpenConversation(BaseSchema):
    """An ephemeral conversation that has not been finalized yet."""

    ephemeral_conversation_id: str
    last_message: str
    timestamp: datetime
    message_count: int


class OpenConversationListResponse(BaseSchema):
    conversations: list[OpenConversation]
    total: int
