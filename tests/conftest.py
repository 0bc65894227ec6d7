"""
Shared pytest configuration and fixtures for ranked-choice-polls.

This module provides common test fixtures and utilities used across
all test modules.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from storage.database import PollDatabase  # noqa: E402
from tabulation.models import Ballot, PollDefinition  # noqa: E402


def make_poll(candidates, poll_id="poll-1", title="Test Poll", **kwargs):
    """Build a PollDefinition with sensible defaults."""
    return PollDefinition(id=poll_id, title=title, candidates=candidates, **kwargs)


def make_ballots(rankings, poll_id="poll-1"):
    """Build one Ballot per ranking list."""
    return [
        Ballot(id=f"ballot-{i}", poll_id=poll_id, rankings=ranking)
        for i, ranking in enumerate(rankings, 1)
    ]


@pytest.fixture
def temp_db_file(tmp_path):
    """Provide a path for a database file that does not exist yet."""
    return str(tmp_path / "polls.db")


@pytest.fixture
def poll_db(temp_db_file):
    """Provide a file-backed poll database with the schema in place."""
    db = PollDatabase(temp_db_file)
    db.initialize_schema()
    yield db
    db.close()


@pytest.fixture
def cyclic_poll():
    """Three candidates with perfectly cyclic preferences."""
    poll = make_poll(["A", "B", "C"])
    ballots = make_ballots([["A", "B", "C"], ["B", "C", "A"], ["C", "A", "B"]])
    return poll, ballots


@pytest.fixture
def malformed_poll():
    """Ballots with unknown ids, repeats and nothing countable."""
    poll = make_poll(["A", "B", "C"])
    ballots = make_ballots([["Z", "A", "A"], ["B", "B"], ["Q"], ["C", "A"]])
    return poll, ballots


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (medium speed, database required)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (hand-computed results)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as mathematical invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
