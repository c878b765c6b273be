"""Request/Response models for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from examguard.config.constants import LiveMode, Score, TargetAudience, Topic


class HealthResponse(BaseModel):
    """Response model for health endpoint."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")


class FaceVerificationRequest(BaseModel):
    """Compare a live capture with the registered avatar."""

    camera_image: str | None = Field(None, description="Live capture, base64 JPEG")
    avatar_image: str | None = Field(None, description="Registered avatar, base64")


class PeriodicCheckRequest(BaseModel):
    """Re-check the candidate during an exam."""

    current_image: str | None = Field(None, description="Current frame, base64 JPEG")
    avatar_image: str | None = Field(None, description="Registered avatar, base64")
    previous_image: str | None = Field(None, description="Previous frame, base64 JPEG")


class LivenessRequest(BaseModel):
    """Check that a capture shows a live person."""

    camera_image: str | None = Field(None, description="Live capture, base64 JPEG")


class VerificationResponse(BaseModel):
    is_match: bool
    confidence: int
    message: str
    skipped: bool = False
    details: str | None = None


class PeriodicCheckResponse(BaseModel):
    is_same_person: bool
    suspicious_activity: bool
    message: str
    activity_type: str | None = None
    skipped: bool = False


class LivenessResponse(BaseModel):
    is_live: bool
    confidence: int
    message: str
    skipped: bool = False


class CreateSessionRequest(BaseModel):
    """Open a live session for a candidate."""

    user_id: str = Field(..., description="User identifier")
    name: str = Field("", description="Display name")
    avatar: str | None = Field(None, description="Registered avatar, base64")
    mode: LiveMode = LiveMode.PRACTICE
    topic: Topic
    audience: TargetAudience = TargetAudience.GENERAL


class FrameRequest(BaseModel):
    """Latest camera frame from the candidate's device."""

    image: str = Field(..., min_length=1, description="Frame, base64 JPEG")


class AnswerRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Candidate's answer")


class EndSessionRequest(BaseModel):
    score: Score | None = Field(None, description="Score to record; defaults to the examiner's verdict")


class ExamResultResponse(BaseModel):
    id: str
    timestamp: str
    score: Score
    duration: str
    topic: str
    transcript: list[dict[str, Any]] = []


class ExaminerReplyResponse(BaseModel):
    reply: str | None = Field(None, description="Examiner reply, None if it was discarded or failed")
    session: dict[str, Any]
