"""Message store: reads and writes chat turns keyed by conversation id."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.base import ValidationError
from app.exceptions.journal import TransientFetchError
from app.schemas.message import OpenConversation, TranscriptEntry
from models.base import as_naive_utc, utcnow
from models.message import Message, MessageRole


logger = logging.getLogger(__name__)


class MessageService:
    """Service class for chat message storage."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fetch_transcript(self, ephemeral_conversation_id: str, user_id: UUID) -> list[TranscriptEntry]:
        """Fetch every turn one user stored under an ephemeral conversation id.

        Turns come back ascending by timestamp. An id with no rows for the user
        yields an empty list; a failing store raises ``TransientFetchError``.
        """
        query = (
            select(Message.sender, Message.text, Message.timestamp)
            .where(
                Message.user_id == user_id,
                Message.ephemeral_conversation_id == ephemeral_conversation_id,
            )
            .order_by(Message.timestamp.asc())
        )
        try:
            result = await self.db.execute(query)
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch transcript for {ephemeral_conversation_id}: {str(e)}")
            raise TransientFetchError(
                ephemeral_conversation_id=ephemeral_conversation_id,
                details={"error": str(e)},
            ) from e

        return [TranscriptEntry(sender=row.sender, text=row.text, timestamp=row.timestamp) for row in rows]

    async def append_message(
        self,
        user_id: UUID,
        ephemeral_conversation_id: str,
        sender: MessageRole,
        text: str,
        timestamp: datetime | None = None,
    ) -> Message:
        """Append one immutable chat turn."""
        if not ephemeral_conversation_id:
            raise ValidationError("Ephemeral conversation id is required")

        message = Message(
            user_id=user_id,
            ephemeral_conversation_id=ephemeral_conversation_id,
            sender=MessageRole(sender),
            text=text,
            timestamp=as_naive_utc(timestamp) if timestamp else utcnow(),
        )
        try:
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)
            return message
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save message for {ephemeral_conversation_id}: {str(e)}")
            raise

    async def get_conversation_messages(self, user_id: UUID, ephemeral_conversation_id: str) -> list[Message]:
        """Get one user's messages under an ephemeral conversation id, oldest first."""
        query = (
            select(Message)
            .where(
                Message.user_id == user_id,
                Message.ephemeral_conversation_id == ephemeral_conversation_id,
            )
            .order_by(Message.timestamp.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_finalized_messages(self, user_id: UUID, conversation_id: UUID) -> list[Message]:
        """Get the messages re-keyed to a permanent conversation id, oldest first."""
        query = (
            select(Message)
            .where(Message.user_id == user_id, Message.conversation_id == conversation_id)
            .order_by(Message.timestamp.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_open_conversations(self, user_id: UUID) -> list[OpenConversation]:
        """List the user's conversations that have not been finalized, newest first."""
        query = (
            select(Message)
            .where(Message.user_id == user_id, Message.ephemeral_conversation_id.is_not(None))
            .order_by(Message.timestamp.desc())
        )
        result = await self.db.execute(query)

        grouped: dict[str, OpenConversation] = {}
        for message in result.scalars().all():
            key = message.ephemeral_conversation_id
            if key in grouped:
                grouped[key].message_count += 1
                continue
            # First hit per id is its latest message
            grouped[key] = OpenConversation(
                ephemeral_conversation_id=key,
                last_message=message.text,
                timestamp=message.timestamp,
                message_count=1,
            )
        return list(grouped.values())
