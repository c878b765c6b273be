"""LLM infrastructure module."""

from examguard.infrastructure.llm.executor import ModelExecutor
from examguard.infrastructure.llm.factory import (
    close_shared_client,
    get_shared_client,
    image_block,
    strip_data_uri,
    user_message,
)

__all__ = [
    "ModelExecutor",
    "close_shared_client",
    "get_shared_client",
    "image_block",
    "strip_data_uri",
    "user_message",
]
