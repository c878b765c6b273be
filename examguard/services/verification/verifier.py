"""Face verifier service."""

import asyncio
import logging
import time
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from examguard.config.constants import FailurePolicy, VerificationStep
from examguard.config.prompts import (
    build_face_match_prompt,
    build_liveness_prompt,
    build_periodic_check_prompt,
    build_reply_correction_input,
)
from examguard.config.settings import Settings
from examguard.infrastructure.llm.executor import ModelExecutor
from examguard.infrastructure.llm.factory import user_message
from examguard.infrastructure.logging.logger import StructuredLogger
from examguard.services.verification.exceptions import VerificationUnavailableError
from examguard.services.verification.models import (
    FaceMatchReply,
    LivenessReply,
    LivenessResult,
    PeriodicCheckReply,
    PeriodicCheckResult,
    VerificationResult,
)
from examguard.utils.json_parser import JSONParser

logger = logging.getLogger(__name__)

ReplyT = TypeVar("ReplyT", bound=BaseModel)
ResultT = TypeVar("ResultT")

# Confidence reported when the reply was unreadable but the policy lets the user through
UNPARSED_CONFIDENCE = 65
# Confidence reported when the model could not be reached
UNAVAILABLE_CONFIDENCE = 50


class FaceVerifier:
    """
    Asks a vision model whether a candidate is who they claim to be.

    No call raises to its caller unless the failure policy is ESCALATE:
    missing input counts as nothing to verify, and model faults (timeouts,
    API errors, unreadable replies) resolve through the failure policy.
    """

    def __init__(
        self,
        settings: Settings,
        executor: ModelExecutor,
        policy: FailurePolicy | None = None,
    ) -> None:
        self.settings = settings
        self.executor = executor
        self.policy = policy or settings.failure_policy
        self.structured = StructuredLogger(__name__)

    async def verify_face_with_avatar(
        self, camera_b64: str | None, avatar_b64: str | None
    ) -> VerificationResult:
        """
        Compare a live capture with the registered avatar.

        Args:
            camera_b64: Live capture, base64 JPEG (data URI prefix allowed)
            avatar_b64: Registered avatar, base64 (data URI prefix allowed)

        Returns:
            VerificationResult. ``is_match`` is True when the model says so or
            when its confidence reaches ``match_confidence_floor``.
        """
        if not camera_b64 or not avatar_b64:
            logger.info("Face verification skipped: missing image")
            return VerificationResult(
                is_match=True, confidence=0, message="Nothing to verify", skipped=True
            )

        start = time.time()
        try:
            reply = await asyncio.wait_for(
                self._ask(build_face_match_prompt(), [camera_b64, avatar_b64], FaceMatchReply),
                self.settings.face_verification_timeout,
            )
        except Exception as e:
            return self._on_failure(
                VerificationStep.FACE_MATCH,
                e,
                passed=VerificationResult(
                    is_match=True,
                    confidence=UNAVAILABLE_CONFIDENCE,
                    message="Verification completed",
                    skipped=True,
                ),
                failed=VerificationResult(
                    is_match=False,
                    confidence=0,
                    message="Verification service unavailable",
                    skipped=True,
                ),
            )

        if reply is None:
            return self._on_unparsed(
                VerificationStep.FACE_MATCH,
                passed=VerificationResult(
                    is_match=True, confidence=UNPARSED_CONFIDENCE, message="Verification completed"
                ),
                failed=VerificationResult(
                    is_match=False, confidence=0, message="Could not read verification result"
                ),
            )

        is_match = reply.is_match is True or reply.confidence >= self.settings.match_confidence_floor
        result = VerificationResult(
            is_match=is_match,
            confidence=reply.confidence,
            message=reply.message or ("Face verified" if is_match else "Face does not match"),
            details=reply.details,
        )
        self.structured.log_step(
            VerificationStep.FACE_MATCH.value,
            {**result.to_dict(), "model_is_match": reply.is_match},
            duration_ms=(time.time() - start) * 1000,
        )
        return result

    async def periodic_face_check(
        self,
        current_b64: str | None,
        avatar_b64: str | None,
        previous_b64: str | None = None,
    ) -> PeriodicCheckResult:
        """
        Check that the candidate is still the registered person and behaves.

        Args:
            current_b64: Current capture
            avatar_b64: Registered avatar
            previous_b64: Optional previous capture, for change-of-person detection
        """
        if not current_b64 or not avatar_b64:
            logger.info("Periodic check skipped: missing image")
            return PeriodicCheckResult(
                is_same_person=True,
                suspicious_activity=False,
                message="Nothing to verify",
                skipped=True,
            )

        images = [current_b64, avatar_b64]
        if previous_b64:
            images.append(previous_b64)

        start = time.time()
        try:
            reply = await asyncio.wait_for(
                self._ask(
                    build_periodic_check_prompt(with_previous=bool(previous_b64)),
                    images,
                    PeriodicCheckReply,
                ),
                self.settings.periodic_check_timeout,
            )
        except Exception as e:
            return self._on_failure(
                VerificationStep.PERIODIC_CHECK,
                e,
                passed=PeriodicCheckResult(
                    is_same_person=True,
                    suspicious_activity=False,
                    message="Check completed",
                    skipped=True,
                ),
                failed=PeriodicCheckResult(
                    is_same_person=False,
                    suspicious_activity=False,
                    message="Monitoring service unavailable",
                    skipped=True,
                ),
            )

        if reply is None:
            return self._on_unparsed(
                VerificationStep.PERIODIC_CHECK,
                passed=PeriodicCheckResult(
                    is_same_person=True, suspicious_activity=False, message="Check completed"
                ),
                failed=PeriodicCheckResult(
                    is_same_person=False,
                    suspicious_activity=False,
                    message="Could not read monitoring result",
                ),
            )

        result = PeriodicCheckResult(
            is_same_person=reply.is_same_person is True,
            suspicious_activity=reply.suspicious_activity is True,
            message=reply.message or "",
            activity_type=reply.activity_type,
        )
        self.structured.log_step(
            VerificationStep.PERIODIC_CHECK.value,
            result.to_dict(),
            duration_ms=(time.time() - start) * 1000,
        )
        return result

    async def detect_liveness(self, camera_b64: str | None) -> LivenessResult:
        """Check whether a capture shows a live person rather than a replayed image."""
        if not camera_b64:
            return LivenessResult(is_live=True, confidence=0, message="Nothing to verify", skipped=True)

        try:
            reply = await asyncio.wait_for(
                self._ask(build_liveness_prompt(), [camera_b64], LivenessReply),
                self.settings.liveness_timeout,
            )
        except Exception as e:
            return self._on_failure(
                VerificationStep.LIVENESS,
                e,
                passed=LivenessResult(is_live=True, confidence=0, message="Check completed", skipped=True),
                failed=LivenessResult(
                    is_live=False, confidence=0, message="Liveness service unavailable", skipped=True
                ),
            )

        if reply is None:
            return self._on_unparsed(
                VerificationStep.LIVENESS,
                passed=LivenessResult(is_live=True, confidence=0, message="Check completed"),
                failed=LivenessResult(is_live=False, confidence=0, message="Could not read liveness result"),
            )

        result = LivenessResult(
            is_live=reply.is_live is True
            and reply.confidence > self.settings.liveness_confidence_floor,
            confidence=reply.confidence,
            message=reply.message or "",
        )
        self.structured.log_step(VerificationStep.LIVENESS.value, result.to_dict())
        return result

    async def _ask(
        self, prompt: str, images: list[str], reply_model: type[ReplyT]
    ) -> ReplyT | None:
        """
        Send prompt and images, then validate the JSON reply.

        An unreadable reply is rejected and re-requested up to
        ``reply_parse_retries`` times. Returns None if no reply validated.
        """
        messages: list[dict[str, Any]] = [user_message(prompt, images)]
        for attempt in range(self.settings.reply_parse_retries + 1):
            text = await self.executor.run(
                messages,
                model=self.settings.vision_model,
                max_tokens=self.settings.vision_max_tokens,
                temperature=self.settings.vision_temperature,
            )
            data = JSONParser.extract_json(text)
            if data:
                try:
                    return reply_model.model_validate(data)
                except ValidationError as e:
                    logger.warning(
                        "Reply rejected for %s (attempt %s): %s",
                        reply_model.__name__,
                        attempt + 1,
                        e.errors(include_url=False),
                    )
            else:
                logger.warning(
                    "No JSON in reply for %s (attempt %s). Text (first 200 chars): %s",
                    reply_model.__name__,
                    attempt + 1,
                    (text or "")[:200],
                )
            messages = messages + [
                {"role": "assistant", "content": text or "{}"},
                {"role": "user", "content": build_reply_correction_input()},
            ]
        return None

    def _on_failure(
        self,
        step: VerificationStep,
        error: Exception,
        passed: ResultT,
        failed: ResultT,
    ) -> ResultT:
        """Resolve a model fault through the failure policy."""
        self.structured.log_error(step.value, error, {"policy": self.policy.value})
        if self.policy == FailurePolicy.ESCALATE:
            raise VerificationUnavailableError(
                f"{step.value} failed: {error}", {"error_type": type(error).__name__}
            ) from error
        if self.policy == FailurePolicy.FAIL_CLOSED:
            return failed
        return passed

    def _on_unparsed(self, step: VerificationStep, passed: ResultT, failed: ResultT) -> ResultT:
        """Resolve an unreadable model reply through the failure policy."""
        logger.warning("%s: model reply unreadable, applying %s", step.value, self.policy.value)
        if self.policy == FailurePolicy.ESCALATE:
            raise VerificationUnavailableError(f"{step.value}: unreadable model reply")
        if self.policy == FailurePolicy.FAIL_CLOSED:
            return failed
        return passed
