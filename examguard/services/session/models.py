"""Live session models."""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from examguard.config.constants import Score, Speaker


@dataclass(frozen=True)
class SessionLogEntry:
    """One line of the session transcript."""

    speaker: Speaker
    text: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {"speaker": self.speaker.value, "text": self.text, "timestamp": self.timestamp}


@dataclass(frozen=True)
class ExamResult:
    """Final record of an exam session. Never mutated after creation."""

    score: Score
    duration: str
    topic: str
    transcript: tuple[SessionLogEntry, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "score": self.score.value,
            "duration": self.duration,
            "transcript": [entry.to_dict() for entry in self.transcript],
            "topic": self.topic,
        }


@dataclass
class UserProfile:
    """The candidate as far as the session is concerned."""

    id: str
    name: str = ""
    avatar: str | None = None


def format_duration(seconds: float) -> str:
    """Format elapsed seconds as ``"M min S sec"``."""
    total = max(int(seconds), 0)
    minutes, secs = divmod(total, 60)
    return f"{minutes} min {secs} sec"
