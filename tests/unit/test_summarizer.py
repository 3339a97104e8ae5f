"""Unit tests for completion normalization and the summarization client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.domains.journal.summarizer import (
    BlockCompletion,
    ContentBlock,
    FlatCompletion,
    GeminiCompletionClient,
    SummarizationClient,
    normalize_completion,
    to_completion_result,
)
from app.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIQuotaExceededError,
    AIServiceError,
    AITimeoutError,
)
from app.exceptions.journal import (
    BlankSummaryError,
    EmptyResponseError,
    SummarizationError,
    SummarizationTimeoutError,
)
from tests.fakes import FakeCompletionClient


def gemini_response(*texts, finish_reason=1, block_reason=None):
    parts = [SimpleNamespace(text=text) for text in texts]
    candidates = [SimpleNamespace(content=SimpleNamespace(parts=parts), finish_reason=finish_reason)]
    return SimpleNamespace(
        candidates=candidates if texts or finish_reason is not None else [],
        prompt_feedback=SimpleNamespace(block_reason=block_reason),
    )


class TestNormalizeCompletion:
    def test_flat_is_trimmed(self):
        assert normalize_completion(FlatCompletion(text="  Dear diary.\n")) == "Dear diary."

    def test_blocks_concatenate_text_in_order(self):
        result = BlockCompletion(
            blocks=[
                ContentBlock(kind="text", text="Today I was tired. "),
                ContentBlock(kind="tool_use"),
                ContentBlock(kind="text", text="Work ran long."),
            ]
        )
        assert normalize_completion(result) == "Today I was tired. Work ran long."

    def test_non_text_blocks_only_normalize_to_empty(self):
        assert normalize_completion(BlockCompletion(blocks=[ContentBlock(kind="image")])) == ""


class TestToCompletionResult:
    def test_plain_string(self):
        assert to_completion_result("hello") == FlatCompletion(text="hello")

    def test_choices_shape(self):
        result = to_completion_result({"choices": [{"message": {"role": "assistant", "content": "entry"}}]})
        assert result == FlatCompletion(text="entry")

    def test_choices_with_text_field(self):
        assert to_completion_result({"choices": [{"text": "entry"}]}) == FlatCompletion(text="entry")

    def test_empty_choices_raise(self):
        with pytest.raises(EmptyResponseError):
            to_completion_result({"choices": []})

    def test_content_blocks_shape(self):
        result = to_completion_result(
            {"content": [{"type": "text", "text": "a"}, {"type": "thinking"}, {"type": "text", "text": "b"}]}
        )
        assert isinstance(result, BlockCompletion)
        assert normalize_completion(result) == "ab"

    def test_empty_content_raises(self):
        with pytest.raises(EmptyResponseError):
            to_completion_result({"content": []})

    def test_none_raises(self):
        with pytest.raises(EmptyResponseError):
            to_completion_result(None)

    def test_gemini_candidates_become_blocks(self):
        result = to_completion_result(gemini_response("Long day. ", "Tired."))
        assert isinstance(result, BlockCompletion)
        assert normalize_completion(result) == "Long day. Tired."

    def test_gemini_without_candidates_raises_empty(self):
        response = SimpleNamespace(candidates=[], prompt_feedback=SimpleNamespace(block_reason=None))
        with pytest.raises(EmptyResponseError):
            to_completion_result(response)

    def test_gemini_blocked_prompt_raises_content_filter(self):
        response = SimpleNamespace(candidates=[], prompt_feedback=SimpleNamespace(block_reason="SAFETY"))
        with pytest.raises(AIContentFilterError):
            to_completion_result(response)

    def test_gemini_safety_stop_without_parts_raises_content_filter(self):
        response = gemini_response(finish_reason=SimpleNamespace(name="SAFETY"))
        with pytest.raises(AIContentFilterError):
            to_completion_result(response)

    def test_object_with_text_attribute(self):
        assert to_completion_result(SimpleNamespace(text="entry")) == FlatCompletion(text="entry")


@pytest.mark.asyncio
class TestGeminiCompletionClient:
    @pytest.fixture
    def mock_genai(self):
        """Mock google.generativeai module."""
        with patch("app.domains.journal.summarizer.genai") as mock:
            mock_model = MagicMock()
            mock_model.generate_content_async = AsyncMock()
            mock.GenerativeModel.return_value = mock_model
            yield mock

    async def test_requires_api_key(self):
        with pytest.raises(AIConfigurationError):
            GeminiCompletionClient(api_key=None, model_name="gemini-1.5-flash")

    async def test_generate_passes_generation_config(self, mock_genai):
        client = GeminiCompletionClient(api_key="key", model_name="gemini-1.5-flash", temperature=0.7)
        client.model.generate_content_async.return_value = gemini_response("An entry.")

        result = await client.generate("prompt", max_output_tokens=1500, temperature=0.5)

        assert normalize_completion(result) == "An entry."
        mock_genai.configure.assert_called_once_with(api_key="key")
        mock_genai.types.GenerationConfig.assert_called_once_with(
            candidate_count=1, max_output_tokens=1500, temperature=0.5
        )
        args, kwargs = client.model.generate_content_async.call_args
        assert args == ("prompt",)
        assert kwargs["generation_config"] is mock_genai.types.GenerationConfig.return_value

    async def test_generate_maps_quota_errors(self, mock_genai):
        client = GeminiCompletionClient(api_key="key", model_name="gemini-1.5-flash")
        client.model.generate_content_async.side_effect = Exception("429 Quota exceeded, retry in 12s")

        with pytest.raises(AIQuotaExceededError) as exc_info:
            await client.generate("prompt")

        assert exc_info.value.details["retry_after"] == 12

    async def test_generate_times_out(self, mock_genai):
        async def slow(*_args, **_kwargs):
            await asyncio.sleep(1)

        client = GeminiCompletionClient(api_key="key", model_name="gemini-1.5-flash", timeout=0.01)
        client.model.generate_content_async.side_effect = slow

        with pytest.raises(AITimeoutError):
            await client.generate("prompt")


@pytest.mark.asyncio
class TestSummarizationClient:
    async def test_returns_trimmed_summary(self):
        fake = FakeCompletionClient(reply="  I was tired after a long day at work.  ")
        summarizer = SummarizationClient(fake, max_output_tokens=1500, temperature=0.7)

        assert await summarizer.summarize("prompt") == "I was tired after a long day at work."
        assert fake.calls == [{"prompt": "prompt", "max_output_tokens": 1500, "temperature": 0.7}]

    async def test_block_reply_is_normalized(self):
        reply = BlockCompletion(blocks=[ContentBlock(kind="text", text="Part one. "), ContentBlock(kind="text", text="Two.")])
        summarizer = SummarizationClient(FakeCompletionClient(reply=reply), 1500, 0.7)

        assert await summarizer.summarize("prompt") == "Part one. Two."

    @pytest.mark.parametrize("reply", ["", "   \n\t "])
    async def test_blank_reply_raises(self, reply):
        summarizer = SummarizationClient(FakeCompletionClient(reply=reply), 1500, 0.7)

        with pytest.raises(BlankSummaryError):
            await summarizer.summarize("prompt")

    async def test_empty_response_passes_through(self):
        summarizer = SummarizationClient(FakeCompletionClient(error=EmptyResponseError()), 1500, 0.7)

        with pytest.raises(EmptyResponseError):
            await summarizer.summarize("prompt")

    async def test_timeout_becomes_summarization_timeout(self):
        summarizer = SummarizationClient(FakeCompletionClient(error=AITimeoutError()), 1500, 0.7)

        with pytest.raises(SummarizationTimeoutError):
            await summarizer.summarize("prompt")

    async def test_provider_error_becomes_summarization_error(self):
        summarizer = SummarizationClient(FakeCompletionClient(error=AIServiceError("boom")), 1500, 0.7)

        with pytest.raises(SummarizationError) as exc_info:
            await summarizer.summarize("prompt")

        assert "boom" in exc_info.value.message
        assert exc_info.value.details["error_code"] == "AI_SERVICE_ERROR"

    async def test_no_retry_on_failure(self):
        fake = FakeCompletionClient(error=AIServiceError("boom"))
        summarizer = SummarizationClient(fake, 1500, 0.7)

        with pytest.raises(SummarizationError):
            await summarizer.summarize("prompt")

        assert len(fake.calls) == 1
