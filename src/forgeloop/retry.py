"""Bounded provider retry for completion calls.

Wraps a CompletionClient call in tenacity.AsyncRetrying: recoverable
ProviderErrors (rate limits, timeouts, transient 5xx) are retried with a
linear backoff up to a small fixed ceiling; fatal ones surface at once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import tenacity

from forgeloop.exceptions import ProviderError
from forgeloop.llm.errors import classify_provider_error

if TYPE_CHECKING:
    from forgeloop.llm.protocols import (
        CompletionClient,
        CompletionRequest,
        CompletionResponse,
    )

logger = logging.getLogger(__name__)


def _is_recoverable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.recoverable


async def complete_with_retry(
    client: CompletionClient,
    request: CompletionRequest,
    *,
    max_retries: int = 2,
    delay: float = 1.0,
) -> CompletionResponse:
    """Call ``client.complete`` with bounded retry on recoverable errors.

    Uses tenacity.AsyncRetrying programmatically (not as decorator) so the
    ceiling and delay come from the run configuration. Attempt *n* waits
    ``delay * n`` seconds before it starts.

    Args:
        client: The completion client.
        request: The request to send.
        max_retries: Retries after the first attempt.
        delay: Backoff step in seconds.

    Returns:
        The client's response.

    Raises:
        ProviderError: The classified error, immediately when fatal or
            after the ceiling is exhausted when recoverable.
    """

    async def _attempt() -> CompletionResponse:
        try:
            return await client.complete(request)
        except ProviderError:
            raise
        except Exception as exc:
            raise classify_provider_error(exc) from exc

    retryer = tenacity.AsyncRetrying(
        retry=tenacity.retry_if_exception(_is_recoverable),
        wait=tenacity.wait_incrementing(start=delay, increment=delay),
        stop=tenacity.stop_after_attempt(max_retries + 1),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return await retryer(_attempt)
