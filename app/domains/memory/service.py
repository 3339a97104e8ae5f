"""Memory service layer with business logic."""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.domains.journal.repository import ConversationStore
from app.exceptions.base import NotFoundError, ValidationError
from app.exceptions.memory import MemoryNotFoundError, MemoryPermissionError
from app.schemas.journal import FinalizationResult
from app.schemas.memory import MemoryCreate, MemoryUpdate
from app.shared.pagination import PaginationParams, paginate
from models.base import utcnow
from models.memory import Memory


logger = logging.getLogger(__name__)


def default_journal_title(prefix: str | None = None) -> str:
    """Title for a memory written from a conversation, e.g. ``Journal Entry 10/19/2026``."""
    return f"{prefix or settings.journal_title_prefix} {utcnow():%m/%d/%Y}"


class MemoryService:
    """Service class for memory business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_memory(self, memory_data: MemoryCreate, user_id: UUID) -> Memory:
        """Create a memory written by hand, optionally linked to one of the user's conversations."""
        if memory_data.conversation_id is not None:
            summary = await ConversationStore(self.db).get_summary(user_id, memory_data.conversation_id)
            if summary is None:
                raise NotFoundError("Conversation not found")

        memory = Memory(
            user_id=user_id,
            conversation_id=memory_data.conversation_id,
            title=memory_data.title,
            content=memory_data.content,
            image_url=memory_data.image_url,
        )
        return await self._save_new(memory)

    async def create_from_conversation(
        self, user_id: UUID, result: FinalizationResult, title: str | None = None
    ) -> Memory:
        """Keep a finalized conversation's summary as a memory."""
        memory = Memory(
            user_id=user_id,
            conversation_id=result.conversation_id,
            title=(title or "").strip() or default_journal_title(),
            content=result.summary,
        )
        return await self._save_new(memory)

    async def get_memory(self, memory_id: UUID, user_id: UUID) -> Memory:
        """Get a memory, ensuring it belongs to the user."""
        result = await self.db.execute(select(Memory).where(Memory.id == memory_id))
        memory = result.scalar_one_or_none()
        if not memory:
            raise MemoryNotFoundError()
        if memory.user_id != user_id:
            raise MemoryPermissionError()
        return memory

    async def list_memories(
        self, user_id: UUID, pagination: Optional[PaginationParams] = None
    ) -> Dict[str, Any]:
        """Get the user's memories, newest first."""
        stmt = select(Memory).where(Memory.user_id == user_id).order_by(desc(Memory.created_at))
        return await paginate(self.db, stmt, pagination or PaginationParams())

    async def update_memory(self, memory_id: UUID, memory_data: MemoryUpdate, user_id: UUID) -> Memory:
        """Update a memory's title, content or image."""
        memory = await self.get_memory(memory_id, user_id)

        update_data = memory_data.model_dump(exclude_unset=True)
        for field in ("title", "content"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"Memory {field} cannot be removed")
        for field, value in update_data.items():
            setattr(memory, field, value)
        memory.updated_at = utcnow()

        try:
            await self.db.commit()
            await self.db.refresh(memory)
            return memory
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to update memory: {str(e)}")

    async def delete_memory(self, memory_id: UUID, user_id: UUID) -> bool:
        """Delete a memory. The conversation it came from is left untouched."""
        memory = await self.get_memory(memory_id, user_id)

        try:
            await self.db.delete(memory)
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to delete memory: {str(e)}")

    async def _save_new(self, memory: Memory) -> Memory:
        try:
            self.db.add(memory)
            await self.db.commit()
            await self.db.refresh(memory)
            return memory
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create memory: {str(e)}")
            raise ValidationError(f"Failed to create memory: {str(e)}")
