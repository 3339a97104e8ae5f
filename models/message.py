"""
Chat message model.

A message is written once per chat turn under the client-issued ephemeral
conversation id. Finalization re-keys it exactly once: ``conversation_id`` is
set to the permanent id and ``ephemeral_conversation_id`` is cleared.
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, utcnow


class MessageRole(str, enum.Enum):
    """Message role enumeration."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """
    Represents a single chat turn.
    """

    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_ephemeral_timestamp", "ephemeral_conversation_id", "timestamp"),
        Index("idx_messages_conversation_timestamp", "conversation_id", "timestamp"),
    )

    user_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender = Column(
        Enum(MessageRole, values_callable=lambda roles: [r.value for r in roles], name="messagerole"),
        nullable=False,
    )
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False)

    ephemeral_conversation_id = Column(String(64), nullable=True)
    conversation_id = Column(
        UUID(), ForeignKey("conversation_summaries.conversation_id"), nullable=True
    )

    # Relationships
    user = relationship("User", back_populates="messages")
    conversation = relationship("ConversationSummary", back_populates="messages")
