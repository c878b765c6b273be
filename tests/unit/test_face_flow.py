"""Tests for the pre-exam face verification flow."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from examguard.config.constants import FaceCheckStatus, FailurePolicy
from examguard.services.face_check.flow import FaceVerificationFlow
from examguard.services.verification.exceptions import SessionStateError
from examguard.services.verification.models import VerificationResult
from tests.fakes import AVATAR, FRAME, FakeCamera


def _verifier(result=None, error=None):
    verifier = MagicMock()
    verifier.verify_face_with_avatar = AsyncMock(return_value=result, side_effect=error)
    return verifier


MATCH = VerificationResult(is_match=True, confidence=91, message="same person")
MISMATCH = VerificationResult(is_match=False, confidence=20, message="Face does not match")


@pytest.mark.asyncio
async def test_match_advances(settings):
    on_verified = AsyncMock()
    flow = FaceVerificationFlow(settings, _verifier(MATCH), FakeCamera(), AVATAR, on_verified)

    status = await flow.handle_verify()

    assert status == FaceCheckStatus.SUCCESS
    assert flow.message == "Verification successful! (91%)"
    assert flow.confidence == 91
    on_verified.assert_awaited_once()


@pytest.mark.asyncio
async def test_capture_error_never_fails(settings):
    on_verified = AsyncMock()
    verifier = _verifier(MATCH)
    camera = FakeCamera(error=RuntimeError("camera busy"))
    flow = FaceVerificationFlow(settings, verifier, camera, AVATAR, on_verified)

    status = await flow.handle_verify()

    assert status == FaceCheckStatus.SUCCESS
    assert flow.message == "Verification completed"
    assert flow.retry_count == 0
    verifier.verify_face_with_avatar.assert_not_awaited()
    on_verified.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "camera,verifier",
    [
        (FakeCamera(frame=None), _verifier(MATCH)),
        (None, _verifier(MATCH)),
        (FakeCamera(), _verifier(error=RuntimeError("api down"))),
    ],
    ids=["empty-capture", "no-camera", "verifier-error"],
)
async def test_faults_pass_under_fail_open(settings, camera, verifier):
    on_verified = AsyncMock()
    flow = FaceVerificationFlow(settings, verifier, camera, AVATAR, on_verified)
    assert await flow.handle_verify() == FaceCheckStatus.SUCCESS
    on_verified.assert_awaited_once()


@pytest.mark.asyncio
async def test_missing_avatar_auto_passes(settings):
    on_verified = AsyncMock()
    camera = FakeCamera()
    flow = FaceVerificationFlow(settings, _verifier(MATCH), camera, "short", on_verified)

    assert await flow.handle_verify() == FaceCheckStatus.SUCCESS
    assert camera.calls == []
    on_verified.assert_awaited_once()


@pytest.mark.asyncio
async def test_mismatch_retry_then_skip(settings):
    on_verified = AsyncMock()
    flow = FaceVerificationFlow(settings, _verifier(MISMATCH), FakeCamera(), AVATAR, on_verified)

    assert await flow.handle_verify() == FaceCheckStatus.FAILED
    assert flow.retry_count == 1
    assert flow.can_skip is False
    with pytest.raises(SessionStateError):
        await flow.skip()
    with pytest.raises(SessionStateError):
        await flow.handle_verify()

    flow.retry()
    assert flow.status == FaceCheckStatus.IDLE
    assert await flow.handle_verify() == FaceCheckStatus.FAILED
    assert flow.retry_count == 2
    assert flow.can_skip is True
    on_verified.assert_not_awaited()

    await flow.skip()
    assert flow.skipped is True
    on_verified.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_only_after_failure(settings):
    flow = FaceVerificationFlow(settings, _verifier(MATCH), FakeCamera(), AVATAR, AsyncMock())
    with pytest.raises(SessionStateError):
        flow.retry()


@pytest.mark.asyncio
async def test_fault_fails_under_fail_closed(settings):
    on_verified = AsyncMock()
    flow = FaceVerificationFlow(
        settings,
        _verifier(MATCH),
        FakeCamera(error=RuntimeError("camera busy")),
        AVATAR,
        on_verified,
        policy=FailurePolicy.FAIL_CLOSED,
    )
    assert await flow.handle_verify() == FaceCheckStatus.FAILED
    assert flow.retry_count == 1
    on_verified.assert_not_awaited()


@pytest.mark.asyncio
async def test_cancelled_flow_does_not_advance(settings):
    on_verified = AsyncMock()
    flow = FaceVerificationFlow(settings, _verifier(MATCH), FakeCamera(), AVATAR, on_verified)
    flow.cancel()
    await flow.handle_verify()
    on_verified.assert_not_awaited()


@pytest.mark.asyncio
async def test_sync_callback_is_supported(settings):
    on_verified = MagicMock(return_value=None)
    flow = FaceVerificationFlow(settings, _verifier(MATCH), FakeCamera(FRAME), AVATAR, on_verified)
    await flow.handle_verify()
    on_verified.assert_called_once()
    assert flow.snapshot()["verified"] is True
