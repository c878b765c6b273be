"""Tests for the face verifier."""

import asyncio

import pytest

from examguard.config.constants import FailurePolicy
from examguard.services.verification.exceptions import VerificationUnavailableError
from examguard.services.verification.verifier import FaceVerifier
from tests.fakes import AVATAR, FRAME

# ==========================================
#  FACE MATCH
# ==========================================


@pytest.mark.asyncio
async def test_confidence_floor_overrides_model_mismatch(settings, executor):
    executor.run.return_value = 'Result: {"isMatch": false, "confidence": 72, "message": "mismatch"}'
    result = await FaceVerifier(settings, executor).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is True
    assert result.confidence == 72
    assert result.skipped is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply", ['{"confidence": 90}', '{"isMatch": null, "confidence": 90}']
)
@pytest.mark.parametrize("policy", [FailurePolicy.FAIL_OPEN, FailurePolicy.FAIL_CLOSED])
async def test_confidence_without_verdict_uses_floor(settings, executor, reply, policy):
    executor.run.return_value = reply
    result = await FaceVerifier(settings, executor, policy=policy).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is True
    assert result.confidence == 90
    assert executor.run.await_count == 1


@pytest.mark.asyncio
async def test_fenced_match(settings, executor):
    executor.run.return_value = '```json\n{"isMatch": true, "confidence": 91, "message": "same person"}\n```'
    result = await FaceVerifier(settings, executor).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is True
    assert result.confidence == 91
    assert result.message == "same person"


@pytest.mark.asyncio
async def test_low_confidence_mismatch(settings, executor):
    executor.run.return_value = '{"isMatch": false, "confidence": 30, "message": "different person"}'
    result = await FaceVerifier(settings, executor).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is False
    assert result.confidence == 30


@pytest.mark.asyncio
async def test_confidence_is_clamped_and_coerced(settings, executor):
    executor.run.side_effect = [
        '{"isMatch": true, "confidence": "85%"}',
        '{"isMatch": true, "confidence": 150}',
    ]
    verifier = FaceVerifier(settings, executor)
    assert (await verifier.verify_face_with_avatar(FRAME, AVATAR)).confidence == 85
    assert (await verifier.verify_face_with_avatar(FRAME, AVATAR)).confidence == 100


@pytest.mark.asyncio
async def test_missing_image_is_nothing_to_verify(settings, executor):
    verifier = FaceVerifier(settings, executor)
    result = await verifier.verify_face_with_avatar(FRAME, None)
    assert (result.is_match, result.confidence, result.skipped) == (True, 0, True)
    result = await verifier.verify_face_with_avatar("", AVATAR)
    assert result.is_match is True
    executor.run.assert_not_awaited()


@pytest.mark.asyncio
async def test_model_error_fails_open(settings, executor):
    executor.run.side_effect = RuntimeError("connection reset")
    result = await FaceVerifier(settings, executor).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is True
    assert result.confidence == 50
    assert result.skipped is True


@pytest.mark.asyncio
async def test_timeout_fails_open(settings, executor):
    async def slow(*args, **kwargs):
        await asyncio.sleep(5)

    executor.run = slow
    fast = settings.model_copy(update={"face_verification_timeout": 0.05})
    result = await FaceVerifier(fast, executor).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is True
    assert result.skipped is True


@pytest.mark.asyncio
async def test_model_error_fail_closed(settings, executor):
    executor.run.side_effect = RuntimeError("connection reset")
    verifier = FaceVerifier(settings, executor, policy=FailurePolicy.FAIL_CLOSED)
    result = await verifier.verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is False
    assert result.skipped is True


@pytest.mark.asyncio
async def test_model_error_escalates(settings, executor):
    executor.run.side_effect = RuntimeError("connection reset")
    verifier = FaceVerifier(settings, executor, policy=FailurePolicy.ESCALATE)
    with pytest.raises(VerificationUnavailableError):
        await verifier.verify_face_with_avatar(FRAME, AVATAR)


@pytest.mark.asyncio
async def test_unreadable_reply_is_retried_then_fails_open(settings, executor):
    executor.run.return_value = "I am unable to compare these photos."
    result = await FaceVerifier(settings, executor).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is True
    assert result.confidence == 65
    assert executor.run.await_count == settings.reply_parse_retries + 1


@pytest.mark.asyncio
async def test_rejected_reply_is_corrected(settings, executor):
    executor.run.side_effect = [
        '{"message": "looks similar"}',
        '{"isMatch": true, "confidence": 88}',
    ]
    result = await FaceVerifier(settings, executor).verify_face_with_avatar(FRAME, AVATAR)
    assert result.is_match is True
    assert result.confidence == 88

    retry_messages = executor.run.await_args_list[1].args[0]
    assert len(retry_messages) == 3
    assert retry_messages[1] == {"role": "assistant", "content": '{"message": "looks similar"}'}


@pytest.mark.asyncio
async def test_face_match_sends_both_images(settings, executor):
    executor.run.return_value = '{"isMatch": true, "confidence": 90}'
    await FaceVerifier(settings, executor).verify_face_with_avatar(FRAME, AVATAR)

    messages = executor.run.await_args.args[0]
    content = messages[0]["content"]
    assert content[0]["type"] == "text"
    assert [block["type"] for block in content[1:]] == ["image", "image"]
    assert content[1]["source"]["media_type"] == "image/jpeg"
    assert not content[1]["source"]["data"].startswith("data:")


# ==========================================
#  PERIODIC CHECK
# ==========================================


@pytest.mark.asyncio
async def test_periodic_other_person(settings, executor):
    executor.run.return_value = '{"isSamePerson": false, "suspiciousActivity": false, "message": "different face"}'
    result = await FaceVerifier(settings, executor).periodic_face_check(FRAME, AVATAR)
    assert result.is_same_person is False
    assert result.suspicious_activity is False
    assert result.is_violation is True


@pytest.mark.asyncio
async def test_periodic_suspicious_activity(settings, executor):
    executor.run.return_value = (
        '{"isSamePerson": true, "suspiciousActivity": true, '
        '"activityType": "phone", "message": "Phone detected"}'
    )
    result = await FaceVerifier(settings, executor).periodic_face_check(FRAME, AVATAR)
    assert result.is_same_person is True
    assert result.suspicious_activity is True
    assert result.activity_type == "phone"
    assert result.message == "Phone detected"


@pytest.mark.asyncio
async def test_periodic_with_previous_frame(settings, executor):
    executor.run.return_value = '{"isSamePerson": true, "suspiciousActivity": false}'
    await FaceVerifier(settings, executor).periodic_face_check(FRAME, AVATAR, previous_b64=FRAME)
    content = executor.run.await_args.args[0][0]["content"]
    assert len(content) == 4


@pytest.mark.asyncio
async def test_periodic_missing_image_and_error(settings, executor):
    verifier = FaceVerifier(settings, executor)
    skipped = await verifier.periodic_face_check(None, AVATAR)
    assert skipped.is_same_person is True
    assert skipped.skipped is True

    executor.run.side_effect = RuntimeError("503")
    errored = await verifier.periodic_face_check(FRAME, AVATAR)
    assert errored.is_same_person is True
    assert errored.suspicious_activity is False
    assert errored.is_violation is False


# ==========================================
#  LIVENESS
# ==========================================


@pytest.mark.asyncio
async def test_liveness_requires_confidence_above_floor(settings, executor):
    executor.run.side_effect = [
        '{"isLive": true, "confidence": 80}',
        '{"isLive": true, "confidence": 70}',
        '{"isLive": false, "confidence": 95}',
    ]
    verifier = FaceVerifier(settings, executor)
    assert (await verifier.detect_liveness(FRAME)).is_live is True
    assert (await verifier.detect_liveness(FRAME)).is_live is False
    assert (await verifier.detect_liveness(FRAME)).is_live is False


@pytest.mark.asyncio
async def test_liveness_missing_image(settings, executor):
    result = await FaceVerifier(settings, executor).detect_liveness(None)
    assert result.is_live is True
    assert result.skipped is True
