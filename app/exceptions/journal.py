# ruff: noqa: D107
"""Conversation finalization exceptions.

Every error carries the ephemeral conversation id and the pipeline stage that
failed so that the HTTP boundary and the logs can identify the attempt.
"""

from typing import Any

from .base import BaseAppException


class FinalizationError(BaseAppException):
    """Base exception for a failed conversation finalization."""

    default_message = "Failed to finalize conversation"
    error_code = "FINALIZATION_ERROR"
    default_stage = "unknown"
    retryable = False

    def __init__(
        self,
        message: str | None = None,
        ephemeral_conversation_id: str | None = None,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.ephemeral_conversation_id = ephemeral_conversation_id
        self.stage = stage or self.default_stage
        details = dict(details or {})
        if ephemeral_conversation_id is not None:
            details.setdefault("ephemeral_conversation_id", ephemeral_conversation_id)
        details.setdefault("stage", self.stage)
        details.setdefault("retryable", self.retryable)
        super().__init__(
            message=message or self.default_message,
            status_code=500,
            error_code=self.error_code,
            details=details,
        )

    def with_context(self, ephemeral_conversation_id: str, stage: str) -> "FinalizationError":
        """Attach the conversation id and stage when the raiser did not know them."""
        if self.ephemeral_conversation_id is None:
            self.ephemeral_conversation_id = ephemeral_conversation_id
            self.details["ephemeral_conversation_id"] = ephemeral_conversation_id
        if self.stage == self.default_stage:
            self.stage = stage
            self.details["stage"] = stage
        return self


class EmptyConversationError(FinalizationError):
    """No messages are stored under the ephemeral conversation id."""

    default_message = "No messages found for the conversation"
    error_code = "EMPTY_CONVERSATION"
    default_stage = "fetching_transcript"


class TransientFetchError(FinalizationError):
    """Reading the transcript from the store failed."""

    default_message = "Failed to fetch conversation messages"
    error_code = "TRANSCRIPT_FETCH_FAILED"
    default_stage = "fetching_transcript"
    retryable = True


class SummarizationError(FinalizationError):
    """The text-generation call produced no usable summary."""

    default_message = "Failed to summarize conversation"
    error_code = "SUMMARIZATION_FAILED"
    default_stage = "summarizing"
    retryable = True


class EmptyResponseError(SummarizationError):
    """The text-generation service returned no choices or content."""

    default_message = "Empty response from text-generation service"
    error_code = "EMPTY_AI_RESPONSE"


class BlankSummaryError(SummarizationError):
    """The generated text was empty once trimmed."""

    default_message = "Text-generation service returned a blank summary"
    error_code = "BLANK_SUMMARY"


class PromptTooLargeError(SummarizationError):
    """The rendered prompt exceeds the configured budget."""

    default_message = "Conversation is too long to summarize"
    error_code = "PROMPT_TOO_LARGE"
    retryable = False


class SummarizationTimeoutError(SummarizationError):
    """The text-generation call did not finish in time."""

    default_message = "Summarization request timed out"
    error_code = "SUMMARIZATION_TIMEOUT"


class PersistenceError(FinalizationError):
    """The atomic end-conversation transaction failed and was rolled back."""

    default_message = "Failed to save conversation summary"
    error_code = "PERSISTENCE_FAILED"
    default_stage = "persisting"
    retryable = True
