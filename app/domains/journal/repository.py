"""Conversation summary persistence."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.journal import PersistenceError
from models.base import utcnow
from models.conversation_summary import ConversationSummary
from models.message import Message


logger = logging.getLogger(__name__)


class ConversationStore:
    """Reads and writes finalized conversations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def end_conversation(
        self,
        ephemeral_conversation_id: str,
        conversation_id: UUID,
        user_id: UUID,
        summary: str,
        start_time: datetime,
        end_time: datetime,
    ) -> int:
        """Store the summary and re-key its messages in a single transaction.

        Either both writes commit or neither does. Finding no message left to
        re-key means another finalization got there first, which also rolls
        back.

        Returns:
            Number of messages moved to ``conversation_id``.

        Raises:
            PersistenceError: The transaction was rolled back.
        """
        try:
            # Close out any read transaction the session auto-began
            if self.db.in_transaction():
                await self.db.commit()

            self.db.add(
                ConversationSummary(
                    conversation_id=conversation_id,
                    user_id=user_id,
                    start_time=start_time,
                    end_time=end_time,
                    summary=summary,
                )
            )
            await self.db.flush()

            result = await self.db.execute(
                update(Message)
                .where(
                    Message.user_id == user_id,
                    Message.ephemeral_conversation_id == ephemeral_conversation_id,
                )
                .values(
                    conversation_id=conversation_id,
                    ephemeral_conversation_id=None,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            rekeyed = result.rowcount or 0
            if rekeyed == 0:
                await self.db.rollback()
                raise PersistenceError(
                    "Conversation was already finalized",
                    ephemeral_conversation_id=ephemeral_conversation_id,
                    details={"conversation_id": str(conversation_id)},
                )

            await self.db.commit()
            return rekeyed

        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"End-conversation transaction failed for {ephemeral_conversation_id}: {str(e)}")
            raise PersistenceError(
                ephemeral_conversation_id=ephemeral_conversation_id,
                details={"conversation_id": str(conversation_id), "error": str(e)},
            ) from e
        except Exception:
            await self.db.rollback()
            raise

    async def list_summaries(self, user_id: UUID) -> list[ConversationSummary]:
        """List the user's finalized conversations, most recently ended first."""
        query = (
            select(ConversationSummary)
            .where(ConversationSummary.user_id == user_id)
            .order_by(ConversationSummary.end_time.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_summary(self, user_id: UUID, conversation_id: UUID) -> ConversationSummary | None:
        query = select(ConversationSummary).where(
            ConversationSummary.conversation_id == conversation_id,
            ConversationSummary.user_id == user_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
