"""
Pytest configuration file for the generator engine tests.

This file ensures that the project root is in the Python path
so that test files can import lazy, pipeline, utils and friends.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import pytest

from lazy import generator
from utils import clear_performance_metrics


@pytest.fixture(autouse=True)
def reset_performance_metrics():
    """Every test starts with an empty metrics store"""
    clear_performance_metrics()
    yield
    clear_performance_metrics()


@pytest.fixture
def failing_source():
    """Factory for a generator that yields `good` values then raises"""

    def make(good, error=None):
        error = error or RuntimeError("production failed")

        @generator
        def produce():
            for value in good:
                yield value
            raise error

        return produce()

    return make
