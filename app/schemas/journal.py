"""Schemas for conversation finalization and conversation summaries."""

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field

from .base import BaseSchema
from .message import MessageResponse


class GenerateSummaryRequest(BaseSchema):
    """Body of ``POST /generate-summary``.

    Both fields are optional at the schema level so that a missing value is
    reported as a 400 by the endpoint rather than a generic 422.
    """

    ephemeral_conversation_id: str | None = Field(None, alias="ephemeralConversationId")
    user_id: UUID | None = Field(None, alias="userId")

    model_config = ConfigDict(populate_by_name=True)


class FinalizationResult(BaseSchema):
    """Output of a successful finalization."""

    summary: str
    conversation_id: UUID = Field(..., serialization_alias="conversationId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ConversationSummaryResponse(BaseSchema):
    conversation_id: UUID
    user_id: UUID
    start_time: datetime
    end_time: datetime
    summary: str


class ConversationDetailResponse(ConversationSummaryResponse):
    messages: list[MessageResponse] = Field(default_factory=list)


class ConversationSummaryListResponse(BaseSchema):
    conversations: list[ConversationSummaryResponse]
    total: int
