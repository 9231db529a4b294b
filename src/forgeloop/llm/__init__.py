"""Completion client adapter: protocol, errors and the built-in client."""

from forgeloop.llm.client import OpenAIClient
from forgeloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMServerError,
    classify_provider_error,
    is_recoverable_message,
)
from forgeloop.llm.protocols import (
    CompletionClient,
    CompletionRequest,
    CompletionResponse,
)

__all__ = [
    "CompletionClient",
    "CompletionRequest",
    "CompletionResponse",
    "LLMAuthError",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMServerError",
    "OpenAIClient",
    "classify_provider_error",
    "is_recoverable_message",
]
