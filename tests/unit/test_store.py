"""Tests for session storage, result history and session models."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from examguard.config.constants import Score, Speaker
from examguard.services.session.models import ExamResult, SessionLogEntry, format_duration
from examguard.services.session.store import ResultHistory, SessionStore
from examguard.services.verification.exceptions import SessionNotFoundError


def _live_session(session_id="s1"):
    session = MagicMock()
    session.id = session_id
    session.close = AsyncMock()
    return session


@pytest.mark.asyncio
async def test_session_store_add_get_remove():
    store = SessionStore()
    session = store.add(_live_session())

    assert await store.get("s1") is session
    assert await store.require("s1") is session
    assert len(store) == 1

    assert await store.remove("s1") is True
    session.close.assert_awaited_once()
    assert await store.remove("s1") is False


@pytest.mark.asyncio
async def test_session_store_unknown_id():
    with pytest.raises(SessionNotFoundError) as exc_info:
        await SessionStore().require("missing")
    assert exc_info.value.session_id == "missing"


@pytest.mark.asyncio
async def test_expired_sessions_are_closed():
    store = SessionStore(ttl_seconds=-1)
    session = store.add(_live_session())

    assert await store.get("s1") is None
    session.close.assert_awaited_once()

    other = store.add(_live_session("s2"))
    assert await store.cleanup_expired() == 1
    other.close.assert_awaited_once()


def test_result_history_is_per_user_and_append_only():
    history = ResultHistory()
    first = ExamResult(score=Score.PASS, duration="1 min 0 sec", topic="History")
    second = ExamResult(score=Score.FAIL, duration="2 min 5 sec", topic="History")

    sink = history.sink_for("u1")
    sink(first)
    sink(second)

    assert history.list("u1") == [first, second]
    assert history.list("u2") == []
    history.list("u1").clear()
    assert len(history.list("u1")) == 2


def test_format_duration():
    assert format_duration(0) == "0 min 0 sec"
    assert format_duration(125.7) == "2 min 5 sec"


def test_exam_result_to_dict():
    entry = SessionLogEntry(speaker=Speaker.USER, text="answer", timestamp=1.0)
    result = ExamResult(score=Score.FAIL, duration="0 min 42 sec", topic="Biology", transcript=(entry,))

    data = result.to_dict()

    assert data["score"] == "FAIL"
    assert data["topic"] == "Biology"
    assert data["transcript"] == [{"speaker": "USER", "text": "answer", "timestamp": 1.0}]
    assert len(data["id"]) == 32
