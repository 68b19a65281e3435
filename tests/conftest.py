"""
Root conftest.py - Session-scoped fixtures shared across all tests.

This file sets up the Python path and provides core fixtures for test discovery.
Additional fixtures are loaded via pytest_plugins from tests/fixtures/.
"""

import logging
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).parent.resolve()
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Load additional fixtures from fixture modules
pytest_plugins = [
    "fixtures.node_fixtures",
    "fixtures.network_fixtures",
]


@pytest.fixture(scope="session")
def tests_dir():
    """Path to tests directory."""
    return TESTS_DIR


@pytest.fixture
def test_logger():
    """Create a test logger."""
    logger = logging.getLogger('test_streamfall')
    logger.setLevel(logging.DEBUG)
    return logger
