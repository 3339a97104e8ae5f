"""Chat service layer with AI companion integration."""

import logging
import uuid
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings
from app.domains.journal.summarizer import CompletionClient, normalize_completion
from app.domains.message.service import MessageService
from app.exceptions.ai import AIServiceError
from app.exceptions.journal import EmptyResponseError
from app.schemas.chat import ChatResponse
from app.schemas.message import MessageResponse, TranscriptEntry
from models.base import utcnow
from models.message import MessageRole


logger = logging.getLogger(__name__)


COMPANION_INSTRUCTIONS = """You are a warm, attentive companion the user talks to about their day.

Guidelines:
- Ask gentle follow-up questions about events, feelings and plans the user mentions
- Keep replies short and conversational, two to four sentences
- Reflect the user's mood back to them without judging it
- Never invent details about the user's life
- Do not give medical, legal or financial advice

Everything said here may later become the user's journal entry, so help them
put their day into words."""


def build_chat_prompt(history: list[TranscriptEntry], history_limit: int) -> str:
    """Render the companion prompt from the most recent turns, ending with the assistant cue."""
    recent = history[-history_limit:] if history_limit > 0 else history
    conversation = COMPANION_INSTRUCTIONS + "\n\nConversation:\n"
    for entry in recent:
        conversation += f"{entry.sender.value.upper()}: {entry.text}\n"
    return conversation + "ASSISTANT:"


class ChatService:
    """Service class for companion chat turns."""

    def __init__(self, db: AsyncSession, completion_client: CompletionClient, config: Settings | None = None):
        """Initialize chat service.

        Args:
            db: Async database session for data operations.
            completion_client: Text-generation client owned by the app lifespan.
            config: Settings override, mainly for tests.
        """
        self.db = db
        self.completion_client = completion_client
        self.config = config or settings
        self.messages = MessageService(db)

    async def send_message(
        self, user_id: UUID, text: str, ephemeral_conversation_id: str | None = None
    ) -> ChatResponse:
        """Store the user's turn, ask the model for a reply and store that too.

        Args:
            user_id: User sending the message
            text: Message text
            ephemeral_conversation_id: Conversation in progress; a new one starts when omitted

        Returns:
            ChatResponse with both stored turns and the ephemeral conversation id

        Raises:
            AIServiceError: The model failed or replied with nothing. The user turn stays stored.
        """
        ephemeral_conversation_id = ephemeral_conversation_id or uuid.uuid4().hex

        user_message = await self.messages.append_message(
            user_id=user_id,
            ephemeral_conversation_id=ephemeral_conversation_id,
            sender=MessageRole.USER,
            text=text,
        )

        history = await self.messages.fetch_transcript(ephemeral_conversation_id, user_id)
        prompt = build_chat_prompt(history, self.config.chat_history_limit)

        try:
            result = await self.completion_client.generate(
                prompt,
                max_output_tokens=self.config.chat_max_tokens,
                temperature=self.config.chat_temperature,
            )
        except EmptyResponseError as e:
            raise AIServiceError("Empty response from AI service", error_code="AI_EMPTY_RESPONSE") from e

        reply = normalize_completion(result)
        if not reply:
            logger.warning(f"Blank chat reply for conversation {ephemeral_conversation_id}")
            raise AIServiceError("Empty response from AI service", error_code="AI_EMPTY_RESPONSE")

        assistant_message = await self.messages.append_message(
            user_id=user_id,
            ephemeral_conversation_id=ephemeral_conversation_id,
            sender=MessageRole.ASSISTANT,
            text=reply,
        )

        return ChatResponse(
            ephemeral_conversation_id=ephemeral_conversation_id,
            user_message=MessageResponse.model_validate(user_message),
            assistant_message=MessageResponse.model_validate(assistant_message),
            timestamp=utcnow(),
        )
