"""Device collaborators: camera, speech and notices."""

from examguard.infrastructure.devices.camera import Camera, FrameBufferCamera
from examguard.infrastructure.devices.notifier import Notice, Notifier, RecordingNotifier
from examguard.infrastructure.devices.speech import (
    LoggingSpeechEngine,
    SpeechEngine,
    SpeechSession,
)

__all__ = [
    "Camera",
    "FrameBufferCamera",
    "LoggingSpeechEngine",
    "Notice",
    "Notifier",
    "RecordingNotifier",
    "SpeechEngine",
    "SpeechSession",
]
