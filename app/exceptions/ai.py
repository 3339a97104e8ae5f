# ruff: noqa: D107
"""AI service exceptions."""

import re
from typing import Any

from .base import BaseAppException


class AIServiceError(BaseAppException):
    """Base exception for AI service errors."""

    def __init__(
        self,
        message: str = "AI service error occurred",
        error_code: str = "AI_SERVICE_ERROR",
        details: dict[str, Any] | None = None,
        status_code: int = 502,
    ):
        super().__init__(message, status_code=status_code, error_code=error_code, details=details)


class AIConfigurationError(AIServiceError):
    """Exception raised when AI service is not properly configured."""

    def __init__(
        self,
        message: str = "AI service is not properly configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_CONFIGURATION_ERROR", details, status_code=503)


class AITimeoutError(AIServiceError):
    """Exception raised when AI service request times out."""

    def __init__(
        self,
        message: str = "AI service request timed out",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_TIMEOUT", details, status_code=504)


class AIQuotaExceededError(AIServiceError):
    """Exception raised when AI service quota is exceeded."""

    def __init__(
        self,
        message: str = "AI service quota exceeded",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_QUOTA_EXCEEDED", details, status_code=429)


class AIRateLimitError(AIServiceError):
    """Exception raised when AI service rate limit is hit."""

    def __init__(
        self,
        message: str = "AI service rate limit exceeded",
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        if details is None:
            details = {}
        if retry_after:
            details["retry_after"] = retry_after
        super().__init__(message, "AI_RATE_LIMITED", details, status_code=429)


class AIContentFilterError(AIServiceError):
    """Exception raised when content is blocked by AI safety filters."""

    def __init__(
        self,
        message: str = "Content was blocked by AI safety filters",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AI_CONTENT_FILTERED", details, status_code=422)


def _extract_retry_delay(error_message: str, default: int = 60) -> int:
    """Pull a retry delay in seconds out of a provider error message."""
    match = re.search(r"retry(?:_delay)?\D{0,20}(\d+)", error_message, re.IGNORECASE)
    if match:
        return int(match.group(1))
    return default


def map_provider_error(error: Exception) -> AIServiceError:
    """Map a raw provider exception to the matching AI service exception."""
    full_error_msg = str(error)
    error_msg = full_error_msg.lower()

    # Check quota first, it often includes "429" as well
    if "quota" in error_msg:
        retry_delay = _extract_retry_delay(full_error_msg)
        return AIQuotaExceededError(
            f"API quota exceeded. Please try again in {retry_delay} seconds",
            details={"retry_after": retry_delay},
        )
    if "429" in full_error_msg or ("rate" in error_msg and "limit" in error_msg):
        retry_delay = _extract_retry_delay(full_error_msg)
        return AIRateLimitError(
            f"Rate limit exceeded. Retry after {retry_delay} seconds", retry_after=retry_delay
        )
    if "safety" in error_msg or "blocked" in error_msg:
        return AIContentFilterError()
    return AIServiceError(f"AI generation failed: {full_error_msg}")
