"""Tests for the in-exam violation tracker."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from examguard.services.session.tracker import (
    OTHER_PERSON_REASON,
    OTHER_PERSON_SPEECH,
    ViolationTracker,
)
from examguard.services.verification.models import PeriodicCheckResult
from tests.fakes import AVATAR, FakeCamera

SAME = PeriodicCheckResult(is_same_person=True, suspicious_activity=False, message="ok")
OTHER = PeriodicCheckResult(is_same_person=False, suspicious_activity=False, message="different face")


def _verifier(result=SAME, error=None):
    verifier = MagicMock()
    verifier.periodic_face_check = AsyncMock(return_value=result, side_effect=error)
    return verifier


def _tracker(settings, verifier, camera=None, avatar=AVATAR, speech=None):
    on_limit = AsyncMock()
    tracker = ViolationTracker(
        settings, verifier, camera or FakeCamera(), avatar, on_limit_reached=on_limit, speech=speech
    )
    return tracker, on_limit


@pytest.mark.asyncio
async def test_three_other_person_checks_end_exam_once(settings):
    tracker, on_limit = _tracker(settings, _verifier(OTHER))

    for _ in range(3):
        await tracker.run_check()

    assert tracker.warning_count == 3
    assert tracker.limit_reached is True
    on_limit.assert_awaited_once_with(OTHER_PERSON_REASON)

    await tracker.run_check()
    assert tracker.warning_count == 3
    on_limit.assert_awaited_once()


@pytest.mark.asyncio
async def test_one_check_can_record_two_violations(settings):
    both = PeriodicCheckResult(
        is_same_person=False, suspicious_activity=True, message="Phone detected", activity_type="phone"
    )
    tracker, on_limit = _tracker(settings, _verifier(both))

    await tracker.run_check()

    assert tracker.warning_count == 2
    assert tracker.last_warning == "Phone detected"
    on_limit.assert_not_awaited()


@pytest.mark.asyncio
async def test_suspicious_activity_reaches_threshold(settings):
    suspicious = PeriodicCheckResult(is_same_person=True, suspicious_activity=True, message="Looking away")
    tracker, on_limit = _tracker(settings, _verifier(suspicious))

    for _ in range(3):
        await tracker.run_check()

    on_limit.assert_awaited_once_with("Looking away")


@pytest.mark.asyncio
async def test_faults_are_not_violations(settings):
    tracker, _ = _tracker(settings, _verifier(error=RuntimeError("api down")))
    assert await tracker.run_check() is None

    tracker, _ = _tracker(settings, _verifier(OTHER), camera=FakeCamera(error=RuntimeError("busy")))
    assert await tracker.run_check() is None

    verifier = _verifier(OTHER)
    tracker, _ = _tracker(settings, verifier, avatar=None)
    assert await tracker.run_check() is None
    verifier.periodic_face_check.assert_not_awaited()
    assert tracker.warning_count == 0


@pytest.mark.asyncio
async def test_tick_skips_while_check_in_flight(settings):
    release = asyncio.Event()

    async def slow_check(*args, **kwargs):
        await release.wait()
        return SAME

    verifier = MagicMock()
    verifier.periodic_face_check = AsyncMock(side_effect=slow_check)
    tracker, _ = _tracker(settings, verifier)

    first = tracker.tick()
    await asyncio.sleep(0)
    assert tracker.check_in_flight is True
    assert tracker.tick() is None
    assert tracker.ticks_skipped == 1

    release.set()
    assert await first == SAME
    assert verifier.periodic_face_check.await_count == 1


@pytest.mark.asyncio
async def test_result_after_stop_is_discarded(settings):
    release = asyncio.Event()

    async def slow_check(*args, **kwargs):
        await release.wait()
        return OTHER

    verifier = MagicMock()
    verifier.periodic_face_check = AsyncMock(side_effect=slow_check)
    tracker, on_limit = _tracker(settings, verifier)

    task = tracker.tick()
    await asyncio.sleep(0)
    await tracker.stop()
    release.set()

    assert await task is None
    assert tracker.warning_count == 0
    on_limit.assert_not_awaited()


@pytest.mark.asyncio
async def test_warning_banner_and_speech(settings):
    speech = MagicMock()
    tracker, _ = _tracker(settings, _verifier(OTHER), speech=speech)

    await tracker.run_check()
    assert tracker.warning_visible is True
    speech.speak.assert_called_once_with(OTHER_PERSON_SPEECH)

    await asyncio.sleep(settings.warning_display_seconds * 3)
    assert tracker.warning_visible is False


@pytest.mark.asyncio
async def test_new_warning_keeps_banner_visible(settings):
    slow = settings.model_copy(update={"warning_display_seconds": 0.3})
    tracker, _ = _tracker(slow, _verifier(OTHER))

    await tracker.run_check()
    await asyncio.sleep(0.18)
    await tracker.run_check()
    await asyncio.sleep(0.18)

    assert tracker.warning_visible is True
    await tracker.stop()
    assert tracker.warning_visible is False


@pytest.mark.asyncio
async def test_loop_runs_checks_on_interval(settings):
    fast = settings.model_copy(update={"periodic_check_interval": 0.01})
    verifier = _verifier(SAME)
    tracker, _ = _tracker(fast, verifier)

    tracker.start()
    assert tracker.running is True
    await asyncio.sleep(0.1)
    await tracker.stop()

    assert tracker.running is False
    assert verifier.periodic_face_check.await_count >= 1
    assert tracker.warning_count == 0
