"""Shared pytest fixtures for Aurora tests."""
import sys
sys.dont_write_bytecode = True

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from aurora.domain.gate import SessionGate  # noqa: E402
from aurora.observability.logging import credential_guard  # noqa: E402

from .helpers import make_draft, make_event  # noqa: E402

T0 = datetime(2025, 11, 11, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0():
    """Fixed reference time for window arithmetic."""
    return T0


@pytest.fixture
def gate():
    """Isolated gate with default settings and its own rate window store."""
    return SessionGate()


@pytest.fixture
def event_factory(t0):
    def _create(**overrides):
        overrides.setdefault("received_at", t0)
        return make_event(**overrides)

    return _create


@pytest.fixture
def draft_factory():
    return make_draft


@pytest.fixture(autouse=True)
def _reset_credential_guard():
    """Blocked counter is process-wide; reset it around each test."""
    credential_guard.blocked = 0
    yield
    credential_guard.blocked = 0
