"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from examguard.config.settings import Settings
from tests.fakes import FakeCamera


@pytest.fixture
def settings():
    """Provide settings with every delay shortened for tests."""
    return Settings(
        api_call_delay=0,
        face_warmup_delay=0,
        fault_advance_delay=0,
        success_advance_delay=0,
        exam_opening_delay=0,
        practice_opening_delay=0,
        warning_display_seconds=0.05,
        periodic_check_interval=60,
    )


@pytest.fixture
def executor():
    """Model executor stand-in; set ``executor.run.side_effect`` per test."""
    mock = MagicMock()
    mock.run = AsyncMock()
    return mock


@pytest.fixture
def camera():
    return FakeCamera()
