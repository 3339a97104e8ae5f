"""
Memory model: a user-owned journal record.

A memory may reference the conversation it was written from, but its
lifecycle is independent of it.
"""

from sqlalchemy import Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class Memory(BaseModel):
    """
    Represents a journal entry owned by a user.
    """

    __tablename__ = "memories"
    __table_args__ = (Index("idx_memories_user_created", "user_id", "created_at"),)

    user_id = Column(UUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    conversation_id = Column(
        UUID(),
        ForeignKey("conversation_summaries.conversation_id", ondelete="SET NULL"),
        nullable=True,
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(2048), nullable=True)

    # Relationships
    user = relationship("User", back_populates="memories")
    conversation = relationship("ConversationSummary", back_populates="memories")
