"""LLM-specific error hierarchy and provider-error classification.

All LLM errors inherit from ProviderError so the executor can decide
between retrying (recoverable) and aborting (fatal) from one attribute.
"""

from __future__ import annotations

import httpx

from forgeloop.exceptions import ProviderError

# Lower-cased message fragments that identify transient provider failures.
RECOVERABLE_SIGNATURES: tuple[str, ...] = (
    "rate limit",
    "rate-limit",
    "too many requests",
    "timeout",
    "timed out",
    "network",
    "econnreset",
    "etimedout",
    "overloaded",
    "500",
    "502",
    "503",
    "504",
)

# Fragments that make an error fatal even when a recoverable one matches.
FATAL_SIGNATURES: tuple[str, ...] = (
    "401",
    "403",
    "unauthorized",
    "forbidden",
    "invalid api key",
    "authentication",
)


class LLMClientError(ProviderError):
    """Base for all LLM client errors."""


class LLMConfigError(LLMClientError):
    """Missing or invalid LLM configuration (e.g., no API key)."""


class LLMRateLimitError(LLMClientError):
    """Rate limited by the API (429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header),
            or None if not provided.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message, recoverable=True)


class LLMAuthError(LLMClientError):
    """Authentication failed (401/403)."""


class LLMServerError(LLMClientError):
    """Transient server-side failure (5xx, timeouts, dropped connections)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=True)


class LLMResponseError(LLMClientError):
    """Unexpected response format from LLM API."""


def is_recoverable_message(message: str) -> bool:
    """Pattern-match an error message for transient provider signatures."""
    lowered = message.lower()
    if any(sig in lowered for sig in FATAL_SIGNATURES):
        return False
    return any(sig in lowered for sig in RECOVERABLE_SIGNATURES)


def classify_provider_error(exc: BaseException) -> ProviderError:
    """Turn any exception raised by a completion client into a ProviderError.

    ProviderErrors pass through unchanged. httpx timeouts and transport
    errors are recoverable. Anything else is classified by its message.
    """
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return LLMServerError(f"{type(exc).__name__}: {exc}")
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return LLMAuthError(f"Authentication failed: HTTP {status}")
        if status == 429 or status >= 500:
            return LLMServerError(f"HTTP {status}: {exc}")
        return LLMClientError(f"HTTP {status}: {exc}")
    message = str(exc) or type(exc).__name__
    return ProviderError(message, recoverable=is_recoverable_message(message))
