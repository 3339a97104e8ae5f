"""Memory schemas for request/response serialization."""

from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseModelSchema, BaseSchema


class MemoryBase(BaseSchema):
    """Base memory schema with common fields."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    image_url: str | None = Field(None, max_length=2048)

    @field_validator("title", "content")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Both title and content are required."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Title and content cannot be empty or only whitespace")
        return v


class MemoryCreate(MemoryBase):
    """Schema for creating a memory by hand."""

    conversation_id: UUID | None = None


class MemoryUpdate(BaseSchema):
    """Schema for editing a memory."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1)
    image_url: str | None = Field(None, max_length=2048)

    @field_validator("title", "content")
    @classmethod
    def validate_not_blank(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Title and content cannot be empty or only whitespace")
        return v


class JournalRequest(BaseSchema):
    """End a conversation and keep the summary as a memory."""

    ephemeral_conversation_id: str = Field(..., min_length=1, max_length=64)
    title: str | None = Field(None, max_length=255)


class MemoryResponse(BaseModelSchema):
    """Schema for memory response."""

    user_id: UUID
    conversation_id: UUID | None = None
    title: str
    content: str
    image_url: str | None = None


class MemoryListResponse(BaseSchema):
    """Schema for paginated memory list response."""

    memories: list[MemoryResponse]
    total: int
    page: int
    size: int
    has_next: bool
    has_prev: bool
