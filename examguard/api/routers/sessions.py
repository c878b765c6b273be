"""Live session endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from examguard.api.dependencies import (
    get_executor,
    get_result_history,
    get_session_store,
    get_settings_dependency,
    get_verifier,
)
from examguard.api.models import (
    AnswerRequest,
    CreateSessionRequest,
    EndSessionRequest,
    ExaminerReplyResponse,
    ExamResultResponse,
    FrameRequest,
)
from examguard.config.settings import Settings
from examguard.infrastructure.devices.camera import FrameBufferCamera
from examguard.infrastructure.llm.executor import ModelExecutor
from examguard.services.face_check.flow import FaceVerificationFlow
from examguard.services.session.factory import create_live_session
from examguard.services.session.live_session import LiveSession
from examguard.services.session.models import UserProfile
from examguard.services.session.store import ResultHistory, SessionStore
from examguard.services.verification.exceptions import SessionStateError
from examguard.services.verification.verifier import FaceVerifier

logger = logging.getLogger(__name__)

router = APIRouter()


def _face_flow(session: LiveSession) -> FaceVerificationFlow:
    if session.face_flow is None:
        raise SessionStateError(
            "Face verification only runs for exam sessions", {"mode": session.mode.value}
        )
    return session.face_flow


@router.post("", status_code=201)
async def create_session(
    request: CreateSessionRequest,
    settings: Settings = Depends(get_settings_dependency),  # noqa: B008
    executor: ModelExecutor = Depends(get_executor),  # noqa: B008
    verifier: FaceVerifier = Depends(get_verifier),  # noqa: B008
    store: SessionStore = Depends(get_session_store),  # noqa: B008
    history: ResultHistory = Depends(get_result_history),  # noqa: B008
) -> dict[str, Any]:
    """
    Open a live session.

    Practice sessions connect right away. Exam sessions wait in the face
    verification step until it passes or is skipped.
    """
    await store.cleanup_expired()
    session = create_live_session(
        settings,
        executor,
        verifier,
        history,
        UserProfile(id=request.user_id, name=request.name, avatar=request.avatar),
        request.mode,
        request.topic,
        request.audience,
    )
    store.add(session)
    await session.begin()
    logger.info("Created %s session %s for user %s", request.mode.value, session.id, request.user_id)
    return session.snapshot()


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    session = await store.require(session_id)
    snapshot = session.snapshot()
    notice = getattr(session.notifier, "last_notice", None)
    snapshot["notice"] = {"title": notice.title, "message": notice.message} if notice else None
    return snapshot


@router.post("/{session_id}/frames", status_code=202)
async def push_frame(
    session_id: str,
    request: FrameRequest,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    """Upload the latest camera frame used by the face check and the tracker."""
    session = await store.require(session_id)
    if not isinstance(session.camera, FrameBufferCamera):
        raise SessionStateError("Session camera does not accept uploaded frames")
    session.camera.push_frame(request.image)
    return {"status": "accepted"}


@router.post("/{session_id}/face-verification")
async def verify_face(
    session_id: str,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    """Run one face verification attempt; on success the exam starts."""
    session = await store.require(session_id)
    await _face_flow(session).handle_verify()
    return session.snapshot()


@router.post("/{session_id}/face-verification/retry")
async def retry_face_verification(
    session_id: str,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    session = await store.require(session_id)
    _face_flow(session).retry()
    return session.snapshot()


@router.post("/{session_id}/face-verification/skip")
async def skip_face_verification(
    session_id: str,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    """Skip verification after repeated failures and start the exam."""
    session = await store.require(session_id)
    await _face_flow(session).skip()
    return session.snapshot()


@router.post("/{session_id}/answers", response_model=ExaminerReplyResponse)
async def submit_answer(
    session_id: str,
    request: AnswerRequest,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    session = await store.require(session_id)
    reply = await session.submit_answer(request.text)
    return {"reply": reply, "session": session.snapshot()}


@router.post("/{session_id}/next", response_model=ExaminerReplyResponse)
async def next_question(
    session_id: str,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    session = await store.require(session_id)
    reply = await session.next_question()
    return {"reply": reply, "session": session.snapshot()}


@router.post("/{session_id}/end")
async def end_session(
    session_id: str,
    request: EndSessionRequest | None = None,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, Any]:
    """End the session normally. Practice sessions produce no result."""
    session = await store.require(session_id)
    result = await session.end_session(request.score if request else None)
    return {"result": result.to_dict() if result else None, "session": session.snapshot()}


@router.delete("/{session_id}")
async def close_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),  # noqa: B008
) -> dict[str, str]:
    """Leave the session. In-flight checks finish and are discarded."""
    session = await store.require(session_id)
    if not session.ended:
        await session.cancel()
    await store.remove(session_id)
    return {"status": "closed"}


history_router = APIRouter()


@history_router.get("/{user_id}/history", response_model=list[ExamResultResponse])
async def get_history(
    user_id: str,
    history: ResultHistory = Depends(get_result_history),  # noqa: B008
) -> list[dict[str, Any]]:
    """Exam results recorded for a user, oldest first."""
    return [result.to_dict() for result in history.list(user_id)]
