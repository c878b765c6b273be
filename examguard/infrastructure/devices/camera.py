"""Camera capture collaborators."""

import logging
import time
from typing import Protocol

logger = logging.getLogger(__name__)


class Camera(Protocol):
    """Anything that can hand over a single base64 JPEG frame."""

    async def take_picture(self, quality: float) -> str | None:
        """Capture one frame at the given JPEG quality (0..1), or None."""
        ...


class FrameBufferCamera:
    """
    Camera backed by frames uploaded from the candidate's device.

    The device captures and pushes frames; ``take_picture`` returns the most
    recent one. Quality is chosen client-side, so the argument is only logged.
    """

    def __init__(self, max_age_seconds: float | None = None) -> None:
        self.max_age_seconds = max_age_seconds
        self._frame: str | None = None
        self._received_at: float | None = None

    def push_frame(self, image_b64: str) -> None:
        self._frame = image_b64 or None
        self._received_at = time.monotonic()

    @property
    def has_frame(self) -> bool:
        return self._frame is not None

    async def take_picture(self, quality: float) -> str | None:
        if self._frame is None:
            logger.debug("No frame available (requested quality=%.2f)", quality)
            return None
        if self.max_age_seconds is not None and self._received_at is not None:
            age = time.monotonic() - self._received_at
            if age > self.max_age_seconds:
                logger.info("Latest frame is stale (%.1fs old), ignoring", age)
                return None
        return self._frame
