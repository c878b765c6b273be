"""
Model executor: one request with timeout and rate-limit retry.
"""
import asyncio
import logging
from typing import Any

import anthropic

from examguard.config.settings import Settings
from examguard.utils.retry import safe_call_api

logger = logging.getLogger(__name__)


def _response_text(response: Any) -> str:
    """Concatenate the text blocks of a Messages API response."""
    parts = []
    for block in getattr(response, "content", None) or []:
        text = getattr(block, "text", None)
        if text:
            parts.append(text)
    return "".join(parts)


class ModelExecutor:
    """Runs Messages API requests with the configured retry policy."""

    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic) -> None:
        self.settings = settings
        self.client = client

    async def run(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float | None = None,
        system: str | None = None,
    ) -> str:
        """
        Send a conversation to the model and return its text reply.

        The whole call, retries included, is bounded by ``timeout`` when given;
        rate-limited attempts back off and retry, any other error propagates.

        Raises:
            asyncio.TimeoutError: If the call exceeds ``timeout``
            RateLimitExhaustedError: If every attempt was rate limited
        """

        async def _call() -> str:
            kwargs: dict[str, Any] = {
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": messages,
            }
            if system:
                kwargs["system"] = system
            response = await self.client.messages.create(**kwargs)
            text = _response_text(response)
            if not text:
                logger.warning("Model %s returned an empty reply", model)
            return text

        call = safe_call_api(
            _call,
            max_attempts=self.settings.api_max_attempts,
            call_delay=self.settings.api_call_delay,
        )
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout)
