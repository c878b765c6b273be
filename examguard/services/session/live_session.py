"""Live exam session lifecycle."""

import asyncio
import contextlib
import inspect
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from examguard.config.constants import (
    TOPIC_LABELS,
    LiveMode,
    LiveStatus,
    Score,
    Speaker,
    TargetAudience,
    Topic,
    VerificationStep,
)
from examguard.config.prompts import CONTINUE_INPUT, FINISH_INPUT
from examguard.config.settings import Settings
from examguard.infrastructure.devices.camera import Camera
from examguard.infrastructure.devices.notifier import Notifier
from examguard.infrastructure.devices.speech import SpeechSession
from examguard.infrastructure.logging.logger import StructuredLogger
from examguard.services.face_check.flow import FaceVerificationFlow
from examguard.services.session.examiner import (
    ExamConversation,
    detect_question_number,
    detect_verdict,
)
from examguard.services.session.models import (
    ExamResult,
    SessionLogEntry,
    UserProfile,
    format_duration,
)
from examguard.services.session.tracker import OTHER_PERSON_REASON, ViolationTracker
from examguard.services.verification.exceptions import SessionStateError
from examguard.services.verification.verifier import FaceVerifier

logger = logging.getLogger(__name__)

ResultSink = Callable[[ExamResult], Awaitable[None] | None]

SECURITY_SCAN_SPEECH = "Running security scan. Please look straight into the camera..."
VIOLATION_TITLE = "EXAM RULES VIOLATION"
EXAMINER_ERROR = "Error receiving the examiner's reply"


class LiveSession:
    """
    One live session between a candidate and the examiner.

    Exam modes open with a face verification; once it passes the session
    connects and the violation tracker runs for as long as the session is
    connected. The session ends exactly once, either through the examiner's
    verdict, the candidate ending it, or the violation limit. Only exam modes
    emit an ``ExamResult`` to ``result_sink``.
    """

    def __init__(
        self,
        settings: Settings,
        user: UserProfile,
        mode: LiveMode,
        topic: Topic,
        audience: TargetAudience,
        verifier: FaceVerifier,
        examiner: ExamConversation,
        camera: Camera,
        speech: SpeechSession,
        notifier: Notifier,
        result_sink: ResultSink | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.settings = settings
        self.user = user
        self.mode = mode
        self.topic = topic
        self.audience = audience
        self.examiner = examiner
        self.camera = camera
        self.speech = speech
        self.notifier = notifier
        self.result_sink = result_sink
        self.structured = StructuredLogger(__name__)

        self.status = LiveStatus.IDLE
        self.error: str | None = None
        self.face_verified = False
        self.transcript: list[SessionLogEntry] = []
        self.ai_transcript = ""
        self.current_question = 0
        self.current_score: Score | None = None
        self.cheating_details: str | None = None
        self.result: ExamResult | None = None
        self.ended = False
        self.closed = False

        self._started_at = time.monotonic()
        self._opening_task: asyncio.Task[None] | None = None

        self.tracker = ViolationTracker(
            settings,
            verifier,
            camera,
            user.avatar,
            on_limit_reached=self._on_violation_limit,
            speech=speech,
        )
        self.face_flow: FaceVerificationFlow | None = None
        if mode.is_exam:
            self.face_flow = FaceVerificationFlow(
                settings, verifier, camera, user.avatar, on_verified=self._on_face_verified
            )

    @property
    def is_exam(self) -> bool:
        return self.mode.is_exam

    @property
    def warning_count(self) -> int:
        return self.tracker.warning_count

    @property
    def opening_task(self) -> asyncio.Task[None] | None:
        return self._opening_task

    async def begin(self) -> None:
        """Practice starts right away; exam modes wait for the face check."""
        if not self.is_exam:
            await self.start()

    async def _on_face_verified(self) -> None:
        self.face_verified = True
        await self.start()

    async def start(self) -> None:
        """Connect the session and schedule the examiner's opening."""
        if self.ended or self.closed:
            raise SessionStateError("Session already ended", {"session_id": self.id})
        if self.status in (LiveStatus.CONNECTING, LiveStatus.CONNECTED):
            return

        await self._set_status(LiveStatus.CONNECTING)
        self.error = None
        self._started_at = time.monotonic()
        try:
            if self.is_exam and not self.face_verified:
                raise SessionStateError("Face verification required before the exam starts")
            await self._set_status(LiveStatus.CONNECTED)
            if self.is_exam:
                self.speech.speak(SECURITY_SCAN_SPEECH)
            delay = (
                self.settings.exam_opening_delay if self.is_exam else self.settings.practice_opening_delay
            )
            self._opening_task = asyncio.create_task(self._open_after(delay))
            self.structured.log_step(
                VerificationStep.SESSION_START.value,
                {"session_id": self.id, "user_id": self.user.id, "mode": self.mode.value},
            )
        except Exception as e:
            logger.error("Failed to start session %s: %s", self.id, e, exc_info=True)
            self.error = str(e)
            await self._set_status(LiveStatus.ERROR)

    async def _open_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            opening = await self.examiner.open()
        except Exception as e:
            logger.error("Examiner opening failed for %s: %s", self.id, e, exc_info=True)
            self.error = EXAMINER_ERROR
            return
        if self.ended or self.closed:
            return
        self.ai_transcript = opening
        self.add_to_log(Speaker.AI, opening)
        self.speech.speak(opening)
        self.current_question = 1

    async def _set_status(self, status: LiveStatus) -> None:
        self.status = status
        await self._sync_tracker()

    async def _sync_tracker(self) -> None:
        """Run the tracker only for a connected, verified exam that is still going."""
        should_run = (
            self.is_exam
            and self.status == LiveStatus.CONNECTED
            and self.face_verified
            and not self.ended
            and not self.closed
        )
        if should_run:
            self.tracker.start()
        elif self.tracker.running:
            await self.tracker.stop()

    def add_to_log(self, speaker: Speaker, text: str) -> None:
        if not text or not text.strip():
            return
        self.transcript.append(SessionLogEntry(speaker=speaker, text=text))

    def _require_active(self) -> None:
        if self.ended or self.closed:
            raise SessionStateError("Session already ended", {"session_id": self.id})
        if self.status != LiveStatus.CONNECTED:
            raise SessionStateError(
                f"Session is not connected ({self.status.value})", {"session_id": self.id}
            )

    async def submit_answer(self, text: str) -> str | None:
        """Log the candidate's answer and return the examiner's reply."""
        self._require_active()
        history = list(self.transcript)
        self.add_to_log(Speaker.USER, text)
        return await self._generate_ai_response(text, history)

    async def next_question(self) -> str | None:
        """Ask for the next question, or for the verdict after the last one."""
        self._require_active()
        prompt = (
            CONTINUE_INPUT
            if self.current_question < self.settings.exam_question_count
            else FINISH_INPUT
        )
        return await self._generate_ai_response(prompt, list(self.transcript))

    async def _generate_ai_response(
        self, user_input: str, history: list[SessionLogEntry]
    ) -> str | None:
        try:
            reply = await self.examiner.reply(history, user_input)
        except Exception as e:
            logger.error("AI response error: %s", e, exc_info=True)
            self.error = EXAMINER_ERROR
            return None

        if self.ended or self.closed:
            logger.info("Session %s ended while the examiner was replying, discarding", self.id)
            return None

        self.ai_transcript = reply
        self.add_to_log(Speaker.AI, reply)
        self.speech.speak(reply)

        question = detect_question_number(reply)
        if question is not None:
            self.current_question = question

        verdict = detect_verdict(reply)
        if verdict is not None and self.is_exam:
            self.current_score = verdict
            await self.end_session(verdict)
        return reply

    def _build_result(self, score: Score) -> ExamResult:
        return ExamResult(
            score=score,
            duration=format_duration(time.monotonic() - self._started_at),
            topic=TOPIC_LABELS[self.topic],
            transcript=tuple(self.transcript),
        )

    async def end_session(self, score: Score | None = None) -> ExamResult | None:
        """
        Normal completion. Exam modes emit a result; practice emits nothing.

        An exam that never passed the face check and connected has nothing
        to end; leave it with ``cancel()`` instead.
        """
        if self.ended:
            return self.result
        if self.is_exam and not (self.face_verified and self.status == LiveStatus.CONNECTED):
            raise SessionStateError(
                f"Exam has not started ({self.status.value})", {"session_id": self.id}
            )
        self.ended = True
        await self.speech.stop()
        await self._sync_tracker()

        if not self.is_exam:
            self.structured.log_step(VerificationStep.SESSION_END.value, {"session_id": self.id})
            return None

        result = self._build_result(score or self.current_score or Score.FAIL)
        self.structured.log_step(
            VerificationStep.SESSION_END.value,
            {"session_id": self.id, "score": result.score.value, "forced": False},
        )
        await self._emit(result)
        return result

    async def _on_violation_limit(self, reason: str) -> None:
        await self.handle_violation(reason or OTHER_PERSON_REASON)

    async def handle_violation(self, reason: str | None = None) -> ExamResult | None:
        """
        Force-end the exam with a failing score.

        Overrides any evaluation in progress; the candidate must acknowledge
        the notice before the result is emitted.
        """
        if self.ended:
            return self.result
        self.ended = True
        self.cheating_details = reason or self.cheating_details
        await self.speech.stop()
        await self._sync_tracker()
        self.current_score = Score.FAIL

        result = self._build_result(Score.FAIL)
        violation_reason = reason or self.cheating_details or "Face not kept inside the frame"
        self.structured.log_step(
            VerificationStep.SESSION_END.value,
            {
                "session_id": self.id,
                "score": result.score.value,
                "forced": True,
                "reason": violation_reason,
                "warning_count": self.tracker.warning_count,
            },
        )
        try:
            await self.notifier.alert(
                VIOLATION_TITLE,
                "You have been found violating the exam rules.\n\n"
                f"Reason: {violation_reason}\n\n"
                "Result: FAIL.",
            )
        except Exception as e:
            logger.error("Violation alert failed for session %s: %s", self.id, e, exc_info=True)
        await self._emit(result)
        return result

    async def _emit(self, result: ExamResult) -> None:
        self.result = result
        if self.result_sink is None:
            return
        try:
            outcome = self.result_sink(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error("Result sink failed for session %s: %s", self.id, e, exc_info=True)

    async def cancel(self) -> None:
        """The candidate backed out of the face check; end without a result."""
        self.ended = True
        await self.close()

    async def close(self) -> None:
        """Leave the session screen. In-flight calls resolve and are discarded."""
        if self.closed:
            return
        self.closed = True
        if self.face_flow is not None:
            self.face_flow.cancel()
        task, self._opening_task = self._opening_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.tracker.stop()
        await self.speech.stop()

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user.id,
            "mode": self.mode.value,
            "topic": self.topic.value,
            "audience": self.audience.value,
            "status": self.status.value,
            "error": self.error,
            "face_verified": self.face_verified,
            "face_check": self.face_flow.snapshot() if self.face_flow else None,
            "tracker": self.tracker.snapshot(),
            "current_question": self.current_question,
            "current_score": self.current_score.value if self.current_score else None,
            "ai_transcript": self.ai_transcript,
            "transcript": [entry.to_dict() for entry in self.transcript],
            "ended": self.ended,
            "result": self.result.to_dict() if self.result else None,
        }
