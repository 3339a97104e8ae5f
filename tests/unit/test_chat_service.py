"""Unit tests for Chat Service."""

from datetime import datetime

import pytest
from sqlalchemy import select

from app.core.config import Settings
from app.domains.chat.service import COMPANION_INSTRUCTIONS, ChatService, build_chat_prompt
from app.domains.journal.summarizer import BlockCompletion, ContentBlock
from app.exceptions.ai import AIServiceError, AITimeoutError
from app.exceptions.journal import EmptyResponseError
from app.schemas.message import TranscriptEntry
from models import Message, MessageRole
from tests.fakes import FakeCompletionClient


async def stored_turns(db, ephemeral_conversation_id):
    result = await db.execute(
        select(Message.sender, Message.text)
        .where(Message.ephemeral_conversation_id == ephemeral_conversation_id)
        .order_by(Message.timestamp)
    )
    return [(sender, text) for sender, text in result.all()]


@pytest.mark.asyncio
class TestChatService:
    """Test cases for ChatService."""

    async def test_send_message_starts_conversation(self, test_db, test_user):
        fake = FakeCompletionClient(reply="  That sounds exhausting. What happened?  ")
        service = ChatService(test_db, fake)

        response = await service.send_message(test_user.id, "I'm tired today")

        assert response.ephemeral_conversation_id
        assert response.user_message.text == "I'm tired today"
        assert response.user_message.sender == MessageRole.USER
        assert response.assistant_message.text == "That sounds exhausting. What happened?"
        assert response.assistant_message.sender == MessageRole.ASSISTANT
        assert await stored_turns(test_db, response.ephemeral_conversation_id) == [
            (MessageRole.USER, "I'm tired today"),
            (MessageRole.ASSISTANT, "That sounds exhausting. What happened?"),
        ]

    async def test_send_message_continues_conversation(self, test_db, test_user, tired_day_conversation):
        fake = FakeCompletionClient(reply="Rest well tonight.")
        service = ChatService(test_db, fake)

        response = await service.send_message(test_user.id, "Going to bed early", tired_day_conversation)

        assert response.ephemeral_conversation_id == tired_day_conversation
        prompt = fake.calls[0]["prompt"]
        assert prompt.startswith(COMPANION_INSTRUCTIONS)
        assert "USER: I'm tired today\nASSISTANT: Why's that?\nUSER: Long day at work\nUSER: Going to bed early\n" in prompt
        assert prompt.endswith("ASSISTANT:")
        assert len(await stored_turns(test_db, tired_day_conversation)) == 5

    async def test_history_excludes_other_users_turns(self, test_db, test_user, test_user_2, tired_day_conversation):
        fake = FakeCompletionClient(reply="Noted.")

        await ChatService(test_db, fake).send_message(test_user_2.id, "My private plans", tired_day_conversation)

        prompt = fake.calls[0]["prompt"]
        assert "I'm tired today" not in prompt
        assert prompt.endswith("USER: My private plans\nASSISTANT:")

    async def test_send_message_uses_chat_settings(self, test_db, test_user):
        fake = FakeCompletionClient(reply="Hi!")
        config = Settings(chat_max_tokens=256, chat_temperature=0.9, chat_history_limit=2)

        await ChatService(test_db, fake, config).send_message(test_user.id, "Hello")

        assert fake.calls[0]["max_output_tokens"] == 256
        assert fake.calls[0]["temperature"] == 0.9

    async def test_block_reply_is_normalized(self, test_db, test_user):
        reply = BlockCompletion(blocks=[ContentBlock(kind="text", text="Tell me "), ContentBlock(kind="text", text="more.")])

        response = await ChatService(test_db, FakeCompletionClient(reply=reply)).send_message(test_user.id, "Hi")

        assert response.assistant_message.text == "Tell me more."

    @pytest.mark.parametrize("reply", ["", "   "])
    async def test_blank_reply_keeps_user_turn(self, test_db, test_user, reply):
        service = ChatService(test_db, FakeCompletionClient(reply=reply))

        with pytest.raises(AIServiceError) as exc_info:
            await service.send_message(test_user.id, "Hello?", "eph-blank")

        assert exc_info.value.error_code == "AI_EMPTY_RESPONSE"
        assert await stored_turns(test_db, "eph-blank") == [(MessageRole.USER, "Hello?")]

    async def test_empty_response_becomes_ai_service_error(self, test_db, test_user):
        service = ChatService(test_db, FakeCompletionClient(error=EmptyResponseError()))

        with pytest.raises(AIServiceError) as exc_info:
            await service.send_message(test_user.id, "Hello?", "eph-empty")

        assert exc_info.value.status_code == 502

    async def test_provider_errors_propagate(self, test_db, test_user):
        service = ChatService(test_db, FakeCompletionClient(error=AITimeoutError()))

        with pytest.raises(AITimeoutError):
            await service.send_message(test_user.id, "Hello?", "eph-timeout")

        assert await stored_turns(test_db, "eph-timeout") == [(MessageRole.USER, "Hello?")]


class TestBuildChatPrompt:
    def test_history_limit_keeps_latest_turns(self):
        history = [
            TranscriptEntry(sender=MessageRole.USER, text=f"turn {i}", timestamp=datetime(2024, 5, 14, 21, i))
            for i in range(5)
        ]

        prompt = build_chat_prompt(history, history_limit=2)

        assert "turn 2" not in prompt
        assert prompt.endswith("USER: turn 3\nUSER: turn 4\nASSISTANT:")

    def test_zero_limit_keeps_everything(self):
        history = [TranscriptEntry(sender=MessageRole.USER, text="only", timestamp=datetime(2024, 5, 14))]

        assert "USER: only\n" in build_chat_prompt(history, history_limit=0)
