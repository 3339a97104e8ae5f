"""Conversation finalization: turn an ephemeral chat into a stored journal summary.

A finalization runs one sequential chain per request:

    Idle -> FetchingTranscript -> Summarizing -> Persisting -> Done

Any failure moves to ``Failed``. Nothing is written before ``Persisting``, and
``Persisting`` is a single transaction, so a failed attempt leaves the
conversation exactly as it was and the caller may simply try again.
"""

import asyncio
import enum
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import PromptOverflowEnum, Settings, settings
from app.domains.journal.prompt import build_prompt
from app.domains.journal.repository import ConversationStore
from app.domains.journal.summarizer import CompletionClient, SummarizationClient
from app.domains.message.service import MessageService
from app.exceptions.base import ValidationError
from app.exceptions.journal import (
    EmptyConversationError,
    FinalizationError,
    PersistenceError,
    SummarizationError,
    TransientFetchError,
)
from app.schemas.journal import FinalizationResult
from models.base import utcnow


logger = logging.getLogger(__name__)


class FinalizationState(str, enum.Enum):
    IDLE = "idle"
    FETCHING_TRANSCRIPT = "fetching_transcript"
    SUMMARIZING = "summarizing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


STAGE_ERRORS = {
    FinalizationState.FETCHING_TRANSCRIPT: TransientFetchError,
    FinalizationState.SUMMARIZING: SummarizationError,
    FinalizationState.PERSISTING: PersistenceError,
}


class ConversationFinalizer:
    """Orchestrates fetch, summarize and persist for one ephemeral conversation."""

    def __init__(
        self,
        messages: MessageService,
        summarizer: SummarizationClient,
        conversations: ConversationStore,
        max_prompt_chars: int = 0,
        prompt_overflow: PromptOverflowEnum = PromptOverflowEnum.reject,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], UUID] = uuid.uuid4,
    ):
        self.messages = messages
        self.summarizer = summarizer
        self.conversations = conversations
        self.max_prompt_chars = max_prompt_chars
        self.prompt_overflow = prompt_overflow
        self.clock = clock
        self.id_factory = id_factory
        self.state = FinalizationState.IDLE

    def _transition(self, state: FinalizationState, ephemeral_conversation_id: str) -> None:
        logger.debug(
            f"Finalization {self.state.value} -> {state.value}",
            extra={"ephemeral_conversation_id": ephemeral_conversation_id, "stage": state.value},
        )
        self.state = state

    async def finalize(
        self, ephemeral_conversation_id: str, user_id: UUID, timeout: float | None = None
    ) -> FinalizationResult:
        """Summarize and permanently store an ephemeral conversation.

        Args:
            ephemeral_conversation_id: Client-issued id the messages were written under.
            user_id: Owner of the conversation; only their messages are read and re-keyed.
            timeout: Seconds allowed for fetching and summarizing. The persisting
                transaction is not bounded so a commit is never interrupted.

        Returns:
            The summary and the newly issued permanent conversation id.

        Raises:
            ValidationError: A required argument is missing.
            EmptyConversationError: No messages are stored under the id.
            TransientFetchError: The transcript could not be read.
            SummarizationError: The model produced no usable summary.
            PersistenceError: The end-conversation transaction failed.
            FinalizationError: The deadline passed before persisting started.
        """
        if not ephemeral_conversation_id or not user_id:
            raise ValidationError("Missing required parameters")

        # Issued before any side effect so the persisting step can use it atomically
        conversation_id = self.id_factory()

        try:
            deadline = asyncio.timeout(timeout)
            try:
                async with deadline:
                    self._transition(FinalizationState.FETCHING_TRANSCRIPT, ephemeral_conversation_id)
                    transcript = await self.messages.fetch_transcript(ephemeral_conversation_id, user_id)
                    if not transcript:
                        raise EmptyConversationError(ephemeral_conversation_id=ephemeral_conversation_id)

                    self._transition(FinalizationState.SUMMARIZING, ephemeral_conversation_id)
                    prompt = build_prompt(transcript, self.max_prompt_chars, self.prompt_overflow)
                    summary = await self.summarizer.summarize(prompt)
            except TimeoutError as e:
                if not deadline.expired():
                    raise
                raise FinalizationError(
                    f"Finalization timed out after {timeout}s",
                    ephemeral_conversation_id=ephemeral_conversation_id,
                    stage=self.state.value,
                ) from e

            self._transition(FinalizationState.PERSISTING, ephemeral_conversation_id)
            rekeyed = await self.conversations.end_conversation(
                ephemeral_conversation_id=ephemeral_conversation_id,
                conversation_id=conversation_id,
                user_id=user_id,
                summary=summary,
                start_time=transcript[0].timestamp,
                end_time=self.clock(),
            )

        except FinalizationError as e:
            self._fail(e.with_context(ephemeral_conversation_id, self.state.value))
            raise
        except Exception as e:
            # Unexpected failures still surface as the typed error for their stage
            stage = self.state
            wrapped = STAGE_ERRORS.get(stage, FinalizationError)(
                f"Unexpected error while {stage.value.replace('_', ' ')}",
                ephemeral_conversation_id=ephemeral_conversation_id,
                stage=stage.value,
                details={"error": str(e)},
            )
            self._fail(wrapped)
            raise wrapped from e

        self._transition(FinalizationState.DONE, ephemeral_conversation_id)
        logger.info(
            f"Finalized conversation {ephemeral_conversation_id} as {conversation_id} ({rekeyed} messages)",
            extra={"ephemeral_conversation_id": ephemeral_conversation_id, "conversation_id": str(conversation_id)},
        )
        return FinalizationResult(summary=summary, conversation_id=conversation_id)

    def _fail(self, error: FinalizationError) -> None:
        self.state = FinalizationState.FAILED
        logger.error(
            f"Finalization of {error.ephemeral_conversation_id} failed during {error.stage}: {error.message}",
            extra={
                "ephemeral_conversation_id": error.ephemeral_conversation_id,
                "stage": error.stage,
                "error_code": error.error_code,
            },
        )

    async def finalize_within(self, ephemeral_conversation_id: str, user_id: UUID, timeout: float) -> FinalizationResult:
        """Run ``finalize`` with a deadline on everything before the persisting transaction."""
        return await self.finalize(ephemeral_conversation_id, user_id, timeout=timeout)


def create_finalizer(
    db: AsyncSession,
    completion_client: CompletionClient,
    config: Settings | None = None,
) -> ConversationFinalizer:
    """Wire a finalizer for one request from its session and client handles."""
    config = config or settings
    return ConversationFinalizer(
        messages=MessageService(db),
        summarizer=SummarizationClient(
            completion_client,
            max_output_tokens=config.summary_max_tokens,
            temperature=config.summary_temperature,
        ),
        conversations=ConversationStore(db),
        max_prompt_chars=config.summary_max_prompt_chars,
        prompt_overflow=config.summary_prompt_overflow,
    )
