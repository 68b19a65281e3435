"""
Fixtures for optimization unit tests.

Provides cheap analytic objectives so the algorithms and the optimizer handle
can be exercised without running any node.
"""

import numpy as np
import pytest


SPHERE_CENTRE = np.array([0.3, -0.4])


def sphere(x):
    """Shifted sphere with its minimum of 0 at ``SPHERE_CENTRE``."""
    return float(np.sum((np.asarray(x) - SPHERE_CENTRE) ** 2))


@pytest.fixture
def sphere_objective():
    return sphere


@pytest.fixture
def sphere_bounds():
    return [(-1.0, 1.0), (-1.0, 1.0)]


@pytest.fixture
def quick_config():
    """Evaluation-bounded run with a fixed seed."""
    return {'MaxTime': 60, 'MaxSteps': 2000, 'RandomSeed': 42, 'TraceInterval': 1000}
