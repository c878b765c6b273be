"""Face verification screen state machine."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from examguard.config.constants import FaceCheckStatus, FailurePolicy
from examguard.config.settings import Settings
from examguard.infrastructure.devices.camera import Camera
from examguard.services.verification.exceptions import SessionStateError
from examguard.services.verification.verifier import FaceVerifier

logger = logging.getLogger(__name__)

IDLE_MESSAGE = "Place your face inside the frame"
COMPLETED_MESSAGE = "Verification completed"


class FaceVerificationFlow:
    """
    Drives the pre-exam face check: idle -> scanning -> success | failed.

    ``failed -> idle`` through ``retry()`` is the only way back. Hardware and
    model faults on the capture-or-verify path end in ``success`` under the
    fail-open policy; only an explicit mismatch from the model ends in
    ``failed``. ``on_verified`` is called once, after the auto-advance delay
    or when the candidate skips.
    """

    def __init__(
        self,
        settings: Settings,
        verifier: FaceVerifier,
        camera: Camera | None,
        avatar_b64: str | None,
        on_verified: Callable[[], Awaitable[None] | None],
        policy: FailurePolicy | None = None,
    ) -> None:
        self.settings = settings
        self.verifier = verifier
        self.camera = camera
        self.avatar_b64 = avatar_b64
        self.on_verified = on_verified
        self.policy = policy or settings.failure_policy

        self.status = FaceCheckStatus.IDLE
        self.message = IDLE_MESSAGE
        self.confidence: int | None = None
        self.retry_count = 0
        self.verified = False
        self.skipped = False
        self.cancelled = False

    @property
    def can_skip(self) -> bool:
        return self.retry_count >= self.settings.skip_after_failures and not self.verified

    async def handle_verify(self) -> FaceCheckStatus:
        """Run one capture-and-verify attempt. Only allowed from ``idle``."""
        if self.status != FaceCheckStatus.IDLE:
            raise SessionStateError(
                f"Cannot start verification while {self.status.value}",
                {"status": self.status.value},
            )
        logger.info("[FaceVerify] Starting verification...")

        advance_delay: float | None
        try:
            advance_delay = await self._attempt()
        except Exception as e:
            logger.error("[FaceVerify] Unexpected error: %s", e, exc_info=True)
            advance_delay = self._fault("unexpected error")

        if advance_delay is not None:
            await asyncio.sleep(advance_delay)
            await self._advance()
        return self.status

    async def _attempt(self) -> float | None:
        """Returns the auto-advance delay on success, None otherwise."""
        if not self.avatar_b64 or len(self.avatar_b64) < self.settings.min_avatar_length:
            logger.info("[FaceVerify] No avatar, auto-passing verification")
            self._set(FaceCheckStatus.SUCCESS, "Verification successful!")
            return self.settings.fault_advance_delay

        self._set(FaceCheckStatus.SCANNING, "Preparing camera...")
        await asyncio.sleep(self.settings.face_warmup_delay)

        if self.camera is None:
            return self._fault("camera unavailable")

        self.message = "Capturing photo..."
        try:
            photo = await self.camera.take_picture(self.settings.face_capture_quality)
        except Exception as e:
            logger.error("[FaceVerify] Camera capture error: %s", e)
            return self._fault("capture failed")

        if not photo:
            return self._fault("empty capture")

        self.message = "Verifying with AI..."
        try:
            result = await self.verifier.verify_face_with_avatar(photo, self.avatar_b64)
        except Exception as e:
            logger.error("[FaceVerify] API error: %s", e)
            return self._fault("verification service error")

        logger.info("[FaceVerify] API result: match=%s confidence=%s", result.is_match, result.confidence)
        self.confidence = result.confidence
        if result.is_match:
            self._set(FaceCheckStatus.SUCCESS, f"Verification successful! ({result.confidence}%)")
            return self.settings.success_advance_delay

        self._set(FaceCheckStatus.FAILED, result.message or "Face does not match")
        self.retry_count += 1
        return None

    def _fault(self, reason: str) -> float | None:
        """Resolve a capture-or-verify fault through the failure policy."""
        logger.warning("[FaceVerify] %s (policy=%s)", reason, self.policy.value)
        if self.policy == FailurePolicy.FAIL_OPEN:
            self._set(FaceCheckStatus.SUCCESS, COMPLETED_MESSAGE)
            return self.settings.fault_advance_delay
        self._set(FaceCheckStatus.FAILED, "Verification could not be completed, please try again")
        self.retry_count += 1
        return None

    def retry(self) -> None:
        """Go back to ``idle`` after a failed attempt."""
        if self.status != FaceCheckStatus.FAILED:
            raise SessionStateError(
                f"Retry is only possible after a failed attempt, not while {self.status.value}",
                {"status": self.status.value},
            )
        self._set(FaceCheckStatus.IDLE, IDLE_MESSAGE)
        self.confidence = None

    async def skip(self) -> None:
        """Proceed without verification once enough attempts failed."""
        if not self.can_skip:
            raise SessionStateError(
                "Skipping is only offered after repeated failed attempts",
                {"retry_count": self.retry_count},
            )
        logger.warning("[FaceVerify] Candidate skipped verification after %s failures", self.retry_count)
        self.skipped = True
        await self._advance()

    def cancel(self) -> None:
        """The candidate left the screen; no further advance happens."""
        self.cancelled = True

    def _set(self, status: FaceCheckStatus, message: str) -> None:
        self.status = status
        self.message = message

    async def _advance(self) -> None:
        if self.verified or self.cancelled:
            return
        self.verified = True
        result = self.on_verified()
        if inspect.isawaitable(result):
            await result

    def snapshot(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "confidence": self.confidence,
            "retry_count": self.retry_count,
            "can_skip": self.can_skip,
            "verified": self.verified,
            "skipped": self.skipped,
        }
