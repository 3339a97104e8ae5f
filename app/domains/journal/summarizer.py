"""Summarization client backed by Google Gemini.

Provider responses are normalized into a ``CompletionResult`` before anything
else looks at them, so callers never branch on which provider answered:

* ``FlatCompletion``: a single completion text field.
* ``BlockCompletion``: an ordered list of typed content blocks, of which only
  ``text`` blocks contribute to the final string.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Protocol, Union

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory
from pydantic import BaseModel, Field

from app.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIServiceError,
    AITimeoutError,
    map_provider_error,
)
from app.exceptions.journal import (
    BlankSummaryError,
    EmptyResponseError,
    SummarizationError,
    SummarizationTimeoutError,
)


logger = logging.getLogger(__name__)


class ContentBlock(BaseModel):
    kind: str
    text: str | None = None


class FlatCompletion(BaseModel):
    shape: Literal["flat"] = "flat"
    text: str


class BlockCompletion(BaseModel):
    shape: Literal["blocks"] = "blocks"
    blocks: list[ContentBlock]


CompletionResult = Annotated[Union[FlatCompletion, BlockCompletion], Field(discriminator="shape")]


def normalize_completion(result: CompletionResult) -> str:
    """Collapse a completion into one trimmed string."""
    if isinstance(result, FlatCompletion):
        return result.text.strip()
    return "".join(block.text for block in result.blocks if block.kind == "text" and block.text).strip()


def _is_safety_stop(finish_reason: Any) -> bool:
    # Gemini reports SAFETY either as the enum member or its numeric value 3
    return getattr(finish_reason, "name", None) == "SAFETY" or finish_reason == 3


def _part_to_block(part: Any) -> ContentBlock:
    text = getattr(part, "text", None)
    if isinstance(text, str) and text:
        return ContentBlock(kind="text", text=text)
    if getattr(part, "function_call", None):
        return ContentBlock(kind="function_call")
    return ContentBlock(kind="other")


def _from_candidates(response: Any) -> CompletionResult:
    candidates = response.candidates
    if not candidates:
        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and getattr(feedback, "block_reason", None):
            logger.error(f"Prompt blocked by provider: {feedback}")
            raise AIContentFilterError()
        raise EmptyResponseError("Text-generation service returned no candidates")

    candidate = candidates[0]
    content = getattr(candidate, "content", None)
    parts = list(getattr(content, "parts", None) or [])
    if not parts:
        if _is_safety_stop(getattr(candidate, "finish_reason", None)):
            raise AIContentFilterError()
        raise EmptyResponseError("Text-generation service returned no content")
    return BlockCompletion(blocks=[_part_to_block(part) for part in parts])


def _from_mapping(response: Mapping) -> CompletionResult:
    if "choices" in response:
        choices = response.get("choices") or []
        if not choices:
            raise EmptyResponseError("Text-generation service returned no choices")
        first = choices[0]
        text = first.get("text")
        if text is None:
            text = (first.get("message") or {}).get("content")
        return FlatCompletion(text=text or "")
    if isinstance(response.get("content"), list):
        blocks = response["content"]
        if not blocks:
            raise EmptyResponseError("Text-generation service returned no content")
        return BlockCompletion(
            blocks=[ContentBlock(kind=block.get("type", "text"), text=block.get("text")) for block in blocks]
        )
    if isinstance(response.get("text"), str):
        return FlatCompletion(text=response["text"])
    raise EmptyResponseError("Unrecognized text-generation response")


def to_completion_result(response: Any) -> CompletionResult:
    """Turn a raw provider response into a ``CompletionResult``.

    Accepts Gemini response objects, plain strings, and the dictionary shapes
    of completion-style (``choices``) and block-style (``content``) APIs.

    Raises:
        EmptyResponseError: No choices or content were returned.
        AIContentFilterError: The provider blocked the prompt or the output.
    """
    if response is None:
        raise EmptyResponseError()
    if isinstance(response, str):
        return FlatCompletion(text=response)
    if isinstance(response, Mapping):
        return _from_mapping(response)
    if hasattr(response, "candidates"):
        return _from_candidates(response)
    text = getattr(response, "text", None)
    if isinstance(text, str):
        return FlatCompletion(text=text)
    raise EmptyResponseError("Unrecognized text-generation response")


class CompletionClient(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResult: ...


class GeminiCompletionClient:
    """Text-generation client handle for Google Gemini.

    Constructed once by the process entry point and passed to the services
    that need it.
    """

    def __init__(
        self,
        api_key: str | None,
        model_name: str,
        max_output_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 30,
    ):
        if not api_key:
            raise AIConfigurationError("Gemini API key not configured")

        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.timeout = timeout

        try:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(
                model_name=model_name,
                safety_settings={
                    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
                    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
                    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
                    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
                },
            )
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {str(e)}")
            raise AIConfigurationError(f"Failed to initialize AI service: {str(e)}") from e

        logger.info(f"Gemini client initialized with model: {model_name}")

    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: int | None = None,
        temperature: float | None = None,
    ) -> CompletionResult:
        generation_config = genai.types.GenerationConfig(
            candidate_count=1,
            max_output_tokens=max_output_tokens or self.max_output_tokens,
            temperature=self.temperature if temperature is None else temperature,
        )
        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(prompt, generation_config=generation_config),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.error(f"Gemini request timed out after {self.timeout}s")
            raise AITimeoutError(details={"timeout": self.timeout}) from None
        except Exception as e:
            logger.error(f"Gemini API call failed: {str(e)}")
            raise map_provider_error(e) from e

        return to_completion_result(response)


class SummarizationClient:
    """Turns a rendered prompt into a non-empty summary string."""

    def __init__(self, completion_client: CompletionClient, max_output_tokens: int, temperature: float):
        self.completion_client = completion_client
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature

    async def summarize(self, prompt: str) -> str:
        """Summarize a prompt, no retries.

        Raises:
            EmptyResponseError: The service returned no choices or content.
            BlankSummaryError: The generated text is empty once trimmed.
            SummarizationTimeoutError: The call exceeded its timeout.
            SummarizationError: Any other provider failure.
        """
        try:
            result = await self.completion_client.generate(
                prompt,
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
            )
        except SummarizationError:
            raise
        except AITimeoutError as e:
            raise SummarizationTimeoutError(details=e.details) from e
        except AIServiceError as e:
            raise SummarizationError(
                f"Failed to summarize conversation: {e.message}",
                details={"error_code": e.error_code},
            ) from e

        summary = normalize_completion(result)
        if not summary:
            raise BlankSummaryError()
        return summary
