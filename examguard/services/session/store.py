"""In-memory stores for live sessions and exam results."""

import logging
import time
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field

from examguard.services.session.live_session import LiveSession
from examguard.services.session.models import ExamResult
from examguard.services.verification.exceptions import SessionNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class StoredSession:
    session: LiveSession
    created_at: float = field(default_factory=time.time)
    last_access: float = field(default_factory=time.time)


class SessionStore:
    """Live sessions by id. Idle sessions expire after ``ttl_seconds``."""

    def __init__(self, ttl_seconds: int = 7200) -> None:
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, StoredSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def add(self, session: LiveSession) -> LiveSession:
        self._sessions[session.id] = StoredSession(session=session)
        return session

    async def get(self, session_id: str) -> LiveSession | None:
        stored = self._sessions.get(session_id)
        if stored is None:
            return None
        now = time.time()
        if now - stored.last_access > self.ttl_seconds:
            await self.remove(session_id)
            return None
        stored.last_access = now
        return stored.session

    async def require(self, session_id: str) -> LiveSession:
        session = await self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def remove(self, session_id: str) -> bool:
        stored = self._sessions.pop(session_id, None)
        if stored is None:
            return False
        await stored.session.close()
        return True

    async def cleanup_expired(self) -> int:
        """Close and remove expired sessions and return the count removed."""
        now = time.time()
        expired = [
            k for k, v in self._sessions.items() if now - v.last_access > self.ttl_seconds
        ]
        for k in expired:
            await self.remove(k)
        if expired:
            logger.info("Removed %d expired sessions", len(expired))
        return len(expired)

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.remove(session_id)


class ResultHistory:
    """Exam results per user, newest last. Results are only ever appended."""

    def __init__(self) -> None:
        self._results: dict[str, list[ExamResult]] = defaultdict(list)

    def append(self, user_id: str, result: ExamResult) -> None:
        self._results[user_id].append(result)
        logger.info(
            "Stored exam result %s for user %s (%s)", result.id, user_id, result.score.value
        )

    def list(self, user_id: str) -> list[ExamResult]:
        return list(self._results.get(user_id, []))

    def sink_for(self, user_id: str) -> Callable[[ExamResult], None]:
        """Result sink that files results under ``user_id``."""

        def sink(result: ExamResult) -> None:
            self.append(user_id, result)

        return sink
