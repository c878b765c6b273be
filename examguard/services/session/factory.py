"""Wiring for new live sessions."""

from examguard.config.constants import LiveMode, TargetAudience, Topic
from examguard.config.settings import Settings
from examguard.infrastructure.devices.camera import FrameBufferCamera
from examguard.infrastructure.devices.notifier import RecordingNotifier
from examguard.infrastructure.devices.speech import (
    LoggingSpeechEngine,
    SpeechEngine,
    SpeechSession,
)
from examguard.infrastructure.llm.executor import ModelExecutor
from examguard.services.session.examiner import ExamConversation
from examguard.services.session.live_session import LiveSession
from examguard.services.session.models import UserProfile
from examguard.services.session.store import ResultHistory
from examguard.services.verification.verifier import FaceVerifier


def create_live_session(
    settings: Settings,
    executor: ModelExecutor,
    verifier: FaceVerifier,
    history: ResultHistory,
    user: UserProfile,
    mode: LiveMode,
    topic: Topic,
    audience: TargetAudience = TargetAudience.GENERAL,
    speech_engine: SpeechEngine | None = None,
    frame_max_age: float | None = None,
) -> LiveSession:
    """Build a session with device stand-ins fed by the candidate's client."""
    return LiveSession(
        settings,
        user,
        mode,
        topic,
        audience,
        verifier=verifier,
        examiner=ExamConversation(settings, executor, mode, topic, audience),
        camera=FrameBufferCamera(max_age_seconds=frame_max_age),
        speech=SpeechSession.for_audience(speech_engine or LoggingSpeechEngine(), audience),
        notifier=RecordingNotifier(),
        result_sink=history.sink_for(user.id),
    )
