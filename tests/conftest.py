"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from studypace.core.models import ReviewState, SessionRecord, TestObservation  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed, timezone-aware 'current time'."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_session(now):
    """Factory for session records observed relative to `now`."""

    def _make(
        id="s1",
        subject_id="math",
        quantity=10.0,
        duration_minutes=100.0,
        observed_at=None,
        review=None,
    ):
        observed_at = observed_at or now
        return SessionRecord(
            id=id,
            subject_id=subject_id,
            quantity=quantity,
            duration_minutes=duration_minutes,
            observed_at=observed_at,
            review=review or ReviewState(step=0, next_due_at=observed_at + timedelta(hours=2)),
        )

    return _make


@pytest.fixture
def observation_pair(now):
    """Two adjacent tests: 50 -> 60 after 20 pages and 5 hours of study."""
    previous = TestObservation(
        id="t1",
        space_id="mock-exam",
        observed_at=now - timedelta(days=7),
        score=50,
        volume_invested=15,
        study_hours=4,
        test_minutes_actual=50,
        test_minutes_recommended=60,
    )
    latest = TestObservation(
        id="t2",
        space_id="mock-exam",
        observed_at=now,
        score=60,
        volume_invested=20,
        study_hours=5,
        test_minutes_actual=90,
        test_minutes_recommended=60,
    )
    return previous, latest


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the user's state file."""
    return Settings(_env_file=None, state_db_path=tmp_path / "state.db")
