"""Blocking user notices."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Shows a dialog the user has to acknowledge."""

    async def alert(self, title: str, message: str) -> None:
        ...


@dataclass
class Notice:
    title: str
    message: str
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class RecordingNotifier:
    """Keeps notices so the client can render them on its next poll."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    async def alert(self, title: str, message: str) -> None:
        logger.info("Notice: %s | %s", title, message.replace("\n", " "))
        self.notices.append(Notice(title=title, message=message))

    @property
    def last_notice(self) -> Notice | None:
        return self.notices[-1] if self.notices else None
