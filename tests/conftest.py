"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from learner_engine.config import Settings  # noqa: E402
from learner_engine.core.models import QuestionCandidate  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (use a temporary SQLite store)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FirstChoiceRandom(random.Random):
    """Generator that always picks the first eligible index."""

    def randrange(self, start, stop=None, step=1):
        return 0 if stop is None else start


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed reference time."""
    return datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def settings():
    """Settings with defaults, ignoring the environment and any .env file."""
    return Settings(_env_file=None, selection_seed=42)


@pytest.fixture
def first_choice_rng():
    """Deterministic generator for selection tests."""
    return FirstChoiceRandom()


@pytest.fixture
def sample_profile():
    """Provide a raw learner profile as stored by older clients."""
    return {
        "userId": "learner-001",
        "overallAbility": 1550,
        "topicAbilities": {"subnetting": 1450, "routing": 1650},
        "topicAttemptCounts": {"subnetting": 3, "routing": 1},
        "itemHistory": [
            {"itemId": "q1", "correct": False, "topic": "subnetting", "timestamp": "2025-02-27T10:00:00Z"},
            {"itemId": "q2", "correct": True, "topic": "routing", "timestamp": "2025-02-28T10:00:00Z"},
        ],
        "lastUpdated": "2025-02-28T10:00:00Z",
    }


@pytest.fixture
def sample_candidates():
    """Provide the canonical three-question pool around 1500."""
    return [
        QuestionCandidate(id="q1", topic="math", difficulty=1400),
        QuestionCandidate(id="q2", topic="math", difficulty=1500),
        QuestionCandidate(id="q3", topic="math", difficulty=1600),
    ]
