"""
Bounded calls to external providers.

Every embedding or completion call is wrapped in a timeout and retried a
fixed number of times with exponential backoff. Exhausting the attempts
raises ProviderError; nothing waits without a bound.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from content_intelligence.errors import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.5


def _describe(error: BaseException, timeout: float) -> str:
    if isinstance(error, asyncio.TimeoutError):
        return f"timed out after {timeout}s"
    return f"failed: {error}"


async def call_with_retry(
    provider: str,
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
) -> T:
    """
    Await operation() with a timeout, retrying on failure.

    Args:
        provider: Provider name for logs and errors (e.g. "embedding")
        operation: Zero-argument callable returning a fresh awaitable per attempt
        timeout: Seconds allowed per attempt
        max_attempts: Total attempts before giving up
        backoff_seconds: Delay before the second attempt, doubled after each failure

    Returns:
        The operation's result

    Raises:
        ProviderError: If every attempt failed or timed out
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            f"{provider} provider {_describe(retry_state.outcome.exception(), timeout)} "
            f"(attempt {retry_state.attempt_number}/{max_attempts}), "
            f"retrying in {retry_state.next_action.sleep:.2f}s"
        )

    retrying = AsyncRetrying(
        retry=retry_if_exception_type(Exception),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_seconds),
        before_sleep=log_retry,
    )

    try:
        async for attempt in retrying:
            with attempt:
                return await asyncio.wait_for(operation(), timeout=timeout)
    except RetryError as e:
        last_error = e.last_attempt.exception()
        logger.warning(f"{provider} provider {_describe(last_error, timeout)} on final attempt")
        reason = "timed out" if isinstance(last_error, asyncio.TimeoutError) else f"failed: {last_error}"
        raise ProviderError(
            provider,
            f"{provider} provider {reason} after {max_attempts} attempts",
            attempts=max_attempts,
        ) from last_error
