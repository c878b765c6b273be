"""Examiner conversation for live sessions."""

import logging
import re

from examguard.config.constants import LiveMode, Score, TargetAudience, Topic
from examguard.config.prompts import (
    RESULT_MARKER,
    build_examiner_system_prompt,
    build_opening_input,
    build_reply_input,
)
from examguard.config.settings import Settings
from examguard.infrastructure.llm.executor import ModelExecutor
from examguard.infrastructure.llm.factory import user_message
from examguard.services.session.models import SessionLogEntry

logger = logging.getLogger(__name__)

_QUESTION_RE = re.compile(r"\bQUESTION\s*#?\s*(\d+)", re.IGNORECASE)
_VERDICT_RE = re.compile(re.escape(RESULT_MARKER) + r"[\s*_]*(PASS|FAIL)\b", re.IGNORECASE)


def detect_question_number(text: str) -> int | None:
    """Highest question number announced in an examiner reply."""
    numbers = [int(n) for n in _QUESTION_RE.findall(text)]
    return max(numbers) if numbers else None


def detect_verdict(text: str) -> Score | None:
    """
    Verdict announced by the examiner, if any.

    A reply carrying the result marker without a readable PASS counts as FAIL.
    """
    if RESULT_MARKER not in text.upper():
        return None
    match = _VERDICT_RE.search(text)
    if match and match.group(1).upper() == Score.PASS.value:
        return Score.PASS
    return Score.FAIL


class ExamConversation:
    """Turn-by-turn conversation with the examiner model."""

    def __init__(
        self,
        settings: Settings,
        executor: ModelExecutor,
        mode: LiveMode,
        topic: Topic,
        audience: TargetAudience,
    ) -> None:
        self.settings = settings
        self.executor = executor
        self.system_prompt = build_examiner_system_prompt(
            mode, topic, audience, question_count=settings.exam_question_count
        )

    async def open(self) -> str:
        """Greeting and first question."""
        return await self._ask(build_opening_input())

    async def reply(self, history: list[SessionLogEntry], user_input: str) -> str:
        """Examiner reply to ``user_input`` given the transcript so far."""
        context = "\n".join(f"{entry.speaker.value}: {entry.text}" for entry in history)
        return await self._ask(build_reply_input(context, user_input))

    async def _ask(self, text: str) -> str:
        reply = await self.executor.run(
            [user_message(text)],
            model=self.settings.examiner_model,
            max_tokens=self.settings.examiner_max_tokens,
            temperature=self.settings.examiner_temperature,
            timeout=self.settings.examiner_timeout,
            system=self.system_prompt,
        )
        logger.debug("Examiner reply (%d chars)", len(reply))
        return reply
