"""In-exam violation tracker."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from examguard.config.constants import VerificationStep
from examguard.config.settings import Settings
from examguard.infrastructure.devices.camera import Camera
from examguard.infrastructure.devices.speech import SpeechSession
from examguard.infrastructure.logging.logger import StructuredLogger
from examguard.services.verification.models import PeriodicCheckResult
from examguard.services.verification.verifier import FaceVerifier

logger = logging.getLogger(__name__)

OTHER_PERSON_REASON = "Another person is taking the exam"
OTHER_PERSON_SPEECH = "Warning! Another person detected. Keep the registered candidate in the frame."
SUSPICIOUS_REASON = "Suspicious activity detected"


class ViolationTracker:
    """
    Periodically re-checks the candidate and counts violations.

    Every ``periodic_check_interval`` seconds a frame is captured and sent to
    the periodic check. A tick that fires while the previous check is still in
    flight is skipped. Each violation raises the warning count by one, shows
    a transient banner and speaks a warning. Reaching ``warning_threshold``
    calls ``on_limit_reached`` once and stops the tracker.
    """

    def __init__(
        self,
        settings: Settings,
        verifier: FaceVerifier,
        camera: Camera,
        avatar_b64: str | None,
        on_limit_reached: Callable[[str], Awaitable[None]],
        speech: SpeechSession | None = None,
    ) -> None:
        self.settings = settings
        self.verifier = verifier
        self.camera = camera
        self.avatar_b64 = avatar_b64
        self.on_limit_reached = on_limit_reached
        self.speech = speech
        self.structured = StructuredLogger(__name__)

        self._warning_count = 0
        self._limit_reached = False
        self._stopped = False
        self._generation = 0
        self._loop_task: asyncio.Task[None] | None = None
        self._check_task: asyncio.Task[PeriodicCheckResult | None] | None = None
        self._banner_handle: asyncio.TimerHandle | None = None

        self.warning_visible = False
        self.last_warning: str | None = None
        self.checks_run = 0
        self.ticks_skipped = 0

    @property
    def warning_count(self) -> int:
        return self._warning_count

    @property
    def limit_reached(self) -> bool:
        return self._limit_reached

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def check_in_flight(self) -> bool:
        return self._check_task is not None and not self._check_task.done()

    def start(self) -> None:
        """Start ticking. No-op if already running or the limit was reached."""
        if self.running or self._limit_reached:
            return
        self._stopped = False
        self._generation += 1
        self._loop_task = asyncio.create_task(self._run())
        logger.info("Violation tracker started (interval=%ss)", self.settings.periodic_check_interval)

    async def stop(self) -> None:
        """
        Stop ticking.

        A check already in flight is not cancelled; its result is discarded.
        """
        self._stopped = True
        task, self._loop_task = self._loop_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._banner_handle is not None:
            self._banner_handle.cancel()
            self._banner_handle = None
        self.warning_visible = False

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.settings.periodic_check_interval)
            if self._stopped:
                break
            self.tick()

    def tick(self) -> asyncio.Task[PeriodicCheckResult | None] | None:
        """Launch one check unless the previous one is still running."""
        if self.check_in_flight:
            self.ticks_skipped += 1
            logger.info("Previous periodic check still in flight, skipping tick")
            return None
        self._check_task = asyncio.create_task(self.run_check())
        return self._check_task

    async def run_check(self) -> PeriodicCheckResult | None:
        """Capture a frame, run the periodic check and record violations."""
        generation = self._generation
        if not self.avatar_b64:
            return None

        try:
            frame = await self.camera.take_picture(self.settings.periodic_capture_quality)
        except Exception as e:
            logger.warning("Periodic capture failed: %s", e)
            return None
        if not frame:
            return None

        try:
            result = await self.verifier.periodic_face_check(frame, self.avatar_b64)
        except Exception as e:
            logger.error("Periodic check error: %s", e, exc_info=True)
            return None

        if self._stopped or generation != self._generation:
            logger.info("Tracker stopped while the check was in flight, discarding result")
            return None

        self.checks_run += 1
        if not result.is_same_person:
            await self.record_violation(OTHER_PERSON_REASON, OTHER_PERSON_SPEECH)
        if result.suspicious_activity:
            message = result.message or SUSPICIOUS_REASON
            await self.record_violation(message, f"Warning! {message}")
        return result

    async def record_violation(self, reason: str, spoken: str | None = None) -> None:
        """Count one violation; at the threshold, end the exam."""
        if self._limit_reached:
            return
        self._warning_count += 1
        self.last_warning = reason
        self._show_banner()
        if self.speech is not None:
            self.speech.speak(spoken or f"Warning! {reason}")

        self.structured.log_step(
            VerificationStep.VIOLATION.value,
            {
                "reason": reason,
                "warning_count": self._warning_count,
                "threshold": self.settings.warning_threshold,
            },
        )

        if self._warning_count >= self.settings.warning_threshold:
            self._limit_reached = True
            await self.stop()
            await self.on_limit_reached(reason)

    def _show_banner(self) -> None:
        loop = asyncio.get_running_loop()
        if self._banner_handle is not None:
            self._banner_handle.cancel()
        self.warning_visible = True
        self._banner_handle = loop.call_later(
            self.settings.warning_display_seconds, self._hide_banner
        )

    def _hide_banner(self) -> None:
        self.warning_visible = False
        self._banner_handle = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "warning_count": self._warning_count,
            "warning_threshold": self.settings.warning_threshold,
            "warning_visible": self.warning_visible,
            "last_warning": self.last_warning,
            "checks_run": self.checks_run,
            "ticks_skipped": self.ticks_skipped,
        }
