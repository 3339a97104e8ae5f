"""
Conversation summary model.

One row per finalized conversation, created by the end-conversation
transaction together with the re-keying of its messages.
"""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import relationship

from .base import UUID, Base, utcnow


class ConversationSummary(Base):
    """
    Represents a finalized conversation and its journal summary.
    """

    __tablename__ = "conversation_summaries"
    __table_args__ = (Index("idx_conversation_summaries_user_end", "user_id", "end_time"),)

    conversation_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    summary = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="conversation_summaries")
    messages = relationship("Message", back_populates="conversation", order_by="Message.timestamp")
    memories = relationship("Memory", back_populates="conversation")
