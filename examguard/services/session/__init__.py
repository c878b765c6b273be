"""Live exam sessions."""

from examguard.services.session.examiner import (
    ExamConversation,
    detect_question_number,
    detect_verdict,
)
from examguard.services.session.factory import create_live_session
from examguard.services.session.live_session import LiveSession
from examguard.services.session.models import (
    ExamResult,
    SessionLogEntry,
    UserProfile,
    format_duration,
)
from examguard.services.session.store import ResultHistory, SessionStore
from examguard.services.session.tracker import ViolationTracker

__all__ = [
    "ExamConversation",
    "ExamResult",
    "LiveSession",
    "ResultHistory",
    "SessionLogEntry",
    "SessionStore",
    "UserProfile",
    "ViolationTracker",
    "create_live_session",
    "detect_question_number",
    "detect_verdict",
    "format_duration",
]
