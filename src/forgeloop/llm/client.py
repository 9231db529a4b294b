"""Built-in OpenAI-compatible async httpx client.

Provides an async HTTP client for OpenAI-compatible chat completion APIs.
Reads configuration from constructor arguments or environment variables.
Retrying is left to the caller (see forgeloop.retry).
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from forgeloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMServerError,
)
from forgeloop.llm.protocols import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)

_AUTH_ERROR_STATUS_CODES = {401, 403}


class OpenAIClient:
    """Async httpx client for OpenAI-compatible chat completions.

    Implements the CompletionClient protocol. Maps 401/403 to LLMAuthError
    (fatal), 429 to LLMRateLimitError and 5xx/transport failures to
    LLMServerError (both recoverable).

    Usage::

        async with OpenAIClient(api_key="sk-...") as client:
            response = await client.complete(request)
            print(response.text)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_model: str = "gpt-4o-mini",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key. Falls back to FORGELOOP_API_KEY env var.
            base_url: API base URL. Falls back to FORGELOOP_BASE_URL env var,
                then to https://api.openai.com/v1.
            default_model: Default model for requests without one.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).

        Raises:
            LLMConfigError: If no API key is provided or found in environment.
        """
        self._api_key = api_key or os.environ.get("FORGELOOP_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Pass api_key= or set FORGELOOP_API_KEY "
                "environment variable."
            )
        self._base_url = (
            base_url
            or os.environ.get("FORGELOOP_BASE_URL", "https://api.openai.com/v1")
        ).rstrip("/")
        self._default_model = default_model
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Execute a single chat completion request.

        Raises:
            LLMAuthError: On 401/403.
            LLMRateLimitError: On 429.
            LLMServerError: On 5xx, timeouts and connection failures.
            LLMResponseError: On unexpected response format.
        """
        payload: dict[str, Any] = {
            "model": request.model or self._default_model,
            "messages": request.messages(),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        headers = {"Authorization": f"Bearer {request.credential or self._api_key}"}
        try:
            response = await self._client.post(
                f"{self._base_url}/chat/completions",
                json=payload,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise LLMServerError(f"Request timeout: {exc}") from exc
        except httpx.TransportError as exc:
            raise LLMServerError(f"Network error: {exc}") from exc

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise LLMAuthError(
                f"Authentication failed: HTTP {response.status_code} - "
                f"{response.text}"
            )

        if response.status_code == 429:
            retry_after_raw = response.headers.get("Retry-After")
            retry_after: float | None = None
            if retry_after_raw is not None:
                try:
                    retry_after = float(retry_after_raw)
                except (ValueError, TypeError):
                    pass
            raise LLMRateLimitError(
                f"Rate limited: HTTP 429 - {response.text}",
                retry_after=retry_after,
            )

        if response.status_code >= 500:
            raise LLMServerError(
                f"Server error: HTTP {response.status_code} - {response.text}"
            )
        if response.status_code >= 400:
            raise LLMClientError(
                f"Request rejected: HTTP {response.status_code} - {response.text}"
            )

        data = response.json()
        return CompletionResponse(
            text=self.extract_content(data),
            usage=data.get("usage"),
            model=data.get("model"),
        )

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()

    async def __aenter__(self) -> OpenAIClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    @staticmethod
    def extract_content(response: dict) -> str:
        """Extract the assistant's message content from a response dict.

        Raises:
            LLMResponseError: If the response format is unexpected.
        """
        try:
            return response["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise LLMResponseError(
                f"Cannot extract content from response: {exc}. "
                f"Response: {response}"
            ) from exc
