"""
Constants, enums, and static values.
"""

from enum import Enum


class LiveStatus(str, Enum):
    """Connection status of a live session."""

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    ERROR = "ERROR"


class LiveMode(str, Enum):
    """Live session modes. EXAM and CUSTOM are proctored."""

    PRACTICE = "PRACTICE"
    EXAM = "EXAM"
    CUSTOM = "CUSTOM"

    @property
    def is_exam(self) -> bool:
        return self in (LiveMode.EXAM, LiveMode.CUSTOM)


class TargetAudience(str, Enum):
    """Who the examiner is talking to."""

    GENERAL = "GENERAL"
    KIDS = "KIDS"


class Topic(str, Enum):
    """Exam topics."""

    MEDICAL = "MEDICAL"
    IT = "IT"
    HISTORY = "HISTORY"
    ENGLISH = "ENGLISH"
    SCIENCE = "SCIENCE"
    GEOGRAPHY = "GEOGRAPHY"
    MATH = "MATH"
    PHYSICS = "PHYSICS"
    CHEMISTRY = "CHEMISTRY"
    BIOLOGY = "BIOLOGY"


TOPIC_LABELS: dict[Topic, str] = {
    Topic.MEDICAL: "Medicine & Health",
    Topic.IT: "Information Technology",
    Topic.HISTORY: "History",
    Topic.ENGLISH: "English",
    Topic.SCIENCE: "Science",
    Topic.GEOGRAPHY: "Geography",
    Topic.MATH: "Mathematics",
    Topic.PHYSICS: "Physics",
    Topic.CHEMISTRY: "Chemistry",
    Topic.BIOLOGY: "Biology",
}


class Score(str, Enum):
    """Final exam verdict."""

    PASS = "PASS"
    FAIL = "FAIL"


class Speaker(str, Enum):
    """Transcript speakers."""

    AI = "AI"
    USER = "USER"


class FaceCheckStatus(str, Enum):
    """States of the face verification screen."""

    IDLE = "idle"
    SCANNING = "scanning"
    SUCCESS = "success"
    FAILED = "failed"


class FailurePolicy(str, Enum):
    """What a verification call returns when the model cannot be reached or understood."""

    FAIL_OPEN = "fail_open"  # let the candidate proceed
    FAIL_CLOSED = "fail_closed"  # report a failed check
    ESCALATE = "escalate"  # raise to the caller


# Voices used by the speech engine, per audience
VOICE_BY_AUDIENCE: dict[TargetAudience, str] = {
    TargetAudience.GENERAL: "en-US-Neural2-F",
    TargetAudience.KIDS: "en-US-Wavenet-C",
}

# Markers that identify a rate-limited model call in an error message
RATE_LIMIT_MARKERS: tuple[str, ...] = ("429", "TooManyRequests", "quota")

# Data URI prefix stripped from inline images
DATA_URI_PATTERN = r"^data:image/\w+;base64,"


class VerificationStep(str, Enum):
    """Steps recorded by the structured logger."""

    FACE_MATCH = "face_match"
    PERIODIC_CHECK = "periodic_check"
    LIVENESS = "liveness"
    VIOLATION = "violation"
    SESSION_START = "session_start"
    SESSION_END = "session_end"
