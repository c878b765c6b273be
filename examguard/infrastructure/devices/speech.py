"""Text-to-speech session owned by its caller."""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from examguard.config.constants import VOICE_BY_AUDIENCE, TargetAudience

logger = logging.getLogger(__name__)


class SpeechEngine(Protocol):
    """Device text-to-speech backend."""

    async def speak(self, text: str, voice: str) -> None:
        """Speak ``text`` and return when the utterance is finished."""
        ...

    async def stop(self) -> None:
        """Interrupt the current utterance."""
        ...


class LoggingSpeechEngine:
    """Engine for headless deployments: utterances are logged, not played."""

    def __init__(self) -> None:
        self.spoken: list[str] = []

    async def speak(self, text: str, voice: str) -> None:
        self.spoken.append(text)
        logger.info("[TTS %s] %s", voice, text[:120])

    async def stop(self) -> None:
        logger.debug("[TTS] stop")


class SpeechSession:
    """
    One speaker for one live session.

    ``speak`` is fire-and-forget: it interrupts the current utterance and
    schedules the new one. ``is_speaking`` reflects the utterance in progress.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        voice: str,
        on_start: Callable[[], None] | None = None,
        on_done: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self.engine = engine
        self.voice = voice
        self.on_start = on_start
        self.on_done = on_done
        self.on_error = on_error
        self._task: asyncio.Task[None] | None = None
        self._is_speaking = False

    @classmethod
    def for_audience(cls, engine: SpeechEngine, audience: TargetAudience) -> "SpeechSession":
        return cls(engine, VOICE_BY_AUDIENCE[audience])

    @property
    def is_speaking(self) -> bool:
        return self._is_speaking

    def speak(self, text: str) -> asyncio.Task[None]:
        """Interrupt any utterance in progress and start speaking ``text``."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.create_task(self._speak(text))
        return self._task

    async def _speak(self, text: str) -> None:
        me = asyncio.current_task()
        self._is_speaking = True
        if self.on_start:
            self.on_start()
        try:
            await self.engine.speak(text, self.voice)
            if self.on_done:
                self.on_done()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("TTS error: %s", e)
            if self.on_error:
                self.on_error(e)
        finally:
            if self._task is me:
                self._is_speaking = False

    async def stop(self) -> None:
        """Stop the current utterance, if any."""
        task, self._task = self._task, None
        self._is_speaking = False
        if task is not None and not task.done():
            task.cancel()
        try:
            await self.engine.stop()
        except Exception as e:
            logger.error("Error stopping TTS: %s", e)
