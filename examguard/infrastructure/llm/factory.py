"""Model client factory helpers."""

import logging
import re
from typing import Any

import anthropic

from examguard.config.constants import DATA_URI_PATTERN
from examguard.config.settings import Settings

logger = logging.getLogger(__name__)

_shared_client: anthropic.AsyncAnthropic | None = None

_MEDIA_TYPE_RE = re.compile(r"^data:(image/\w+);base64,")


def get_shared_client(settings: Settings) -> anthropic.AsyncAnthropic:
    """
    Get or create a shared AsyncAnthropic instance.

    All verifiers and examiners share one HTTP connection pool.
    """
    global _shared_client
    if _shared_client is None:
        _shared_client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        logger.debug("Created shared Anthropic client")
    return _shared_client


async def close_shared_client() -> None:
    """
    Close the shared client instance.

    Should be called during application shutdown to properly clean up resources.
    """
    global _shared_client
    if _shared_client is not None:
        await _shared_client.close()
        _shared_client = None


def strip_data_uri(image_b64: str) -> str:
    """Remove a ``data:image/...;base64,`` prefix if present."""
    return re.sub(DATA_URI_PATTERN, "", image_b64)


def image_block(image_b64: str) -> dict[str, Any]:
    """Build an inline base64 image content block."""
    match = _MEDIA_TYPE_RE.match(image_b64)
    media_type = match.group(1) if match else "image/jpeg"
    if media_type == "image/jpg":
        media_type = "image/jpeg"
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": media_type,
            "data": strip_data_uri(image_b64),
        },
    }


def user_message(prompt: str, images: list[str] | None = None) -> dict[str, Any]:
    """Build a user turn with the prompt followed by inline images."""
    content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
    for image in images or []:
        content.append(image_block(image))
    return {"role": "user", "content": content}
