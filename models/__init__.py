"""
Models package initialization.
"""

from .base import Base, BaseModel, utcnow
from .conversation_summary import ConversationSummary
from .memory import Memory
from .message import Message, MessageRole
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "utcnow",
    "User",
    "Message",
    "MessageRole",
    "ConversationSummary",
    "Memory",
]
