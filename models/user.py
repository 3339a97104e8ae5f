"""
Provides the User model for the application's database schema.

Users are owned by the hosted authentication provider; a local row is created
the first time a valid token for a new subject is seen.

Attributes
----------
auth_user_id : sqlalchemy.Column
    Subject (``sub``) of the provider-issued token.
email : sqlalchemy.Column
    The email address of the user, if the provider shares it.
username : sqlalchemy.Column
    The optional display name of the user.
is_active : sqlalchemy.Column
    A boolean indicating if the user is active. Defaults to `True`.
"""

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class User(BaseModel):
    """
    Represents a user entity in the application.

    :ivar auth_user_id: Unique identifier for the user provided by the auth provider.
    :type auth_user_id: str
    :ivar email: Email address of the user.
    :type email: str
    :ivar username: Username of the user. This is optional.
    :type username: str
    :ivar is_active: Indicates whether the user account is active.
    :type is_active: bool
    """

    __tablename__ = "users"

    auth_user_id = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), nullable=True)
    username = Column(String(100))
    is_active = Column(Boolean, default=True)

    # Relationships
    messages = relationship("Message", back_populates="user", cascade="all, delete-orphan")
    conversation_summaries = relationship(
        "ConversationSummary", back_populates="user", cascade="all, delete-orphan"
    )
    memories = relationship("Memory", back_populates="user", cascade="all, delete-orphan")
