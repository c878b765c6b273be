"""
Retry utilities for handling rate limits on model calls.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import anthropic

from examguard.config.constants import RATE_LIMIT_MARKERS

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_CALL_DELAY = 1.0


class RateLimitExhaustedError(Exception):
    """Raised when every attempt hit a rate limit."""


def is_rate_limit_error(exception: BaseException) -> bool:
    """Check if an exception signals a rate-limited (429) call."""
    if isinstance(exception, anthropic.RateLimitError):
        return True
    error_str = str(exception)
    return any(marker in error_str for marker in RATE_LIMIT_MARKERS)


def _is_rate_limited_response(result: Any) -> bool:
    """Detect HTTP-like response objects returned with status 429."""
    return getattr(result, "status", None) == 429 or getattr(result, "status_code", None) == 429


async def safe_call_api(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    call_delay: float = DEFAULT_CALL_DELAY,
) -> T:
    """
    Execute an async call with a fixed pre-call delay and backoff on rate limits.

    Args:
        func: Async function to execute (no parameters)
        max_attempts: Total number of attempts
        call_delay: Seconds to wait before every attempt

    Returns:
        Result from the function

    Raises:
        RateLimitExhaustedError: If every attempt was rate limited
        Exception: Any non rate-limit error, immediately
    """
    last_error: Exception | None = None
    for attempt in range(max_attempts):
        try:
            if call_delay > 0:
                await asyncio.sleep(call_delay)

            result = await func()
            if _is_rate_limited_response(result):
                raise RuntimeError("429 TooManyRequests")
            return result

        except Exception as e:
            if not is_rate_limit_error(e):
                raise
            if attempt < max_attempts - 1:
                wait_time = 2**attempt + random.uniform(0, 1)
                logger.warning(
                    "Rate limit hit. Attempt %s/%s. Retrying in %.2fs...",
                    attempt + 1,
                    max_attempts,
                    wait_time,
                )
                await asyncio.sleep(wait_time)
                continue
            last_error = e
            logger.error("Rate limit persisted after %s attempts", max_attempts)

    raise RateLimitExhaustedError(
        f"Failed after {max_attempts} retries due to 429 error"
    ) from last_error
