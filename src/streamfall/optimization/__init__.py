"""Optimizer backend: handle, algorithms, cancellation and early stopping."""

from .algorithms import ALGORITHM_REGISTRY, get_algorithm, list_algorithms
from .callbacks import CancellationToken, create_callback
from .optimizer import OptimizationResult, Optimizer, StopReason
from .progress import ProgressTracker

__all__ = [
    'Optimizer',
    'OptimizationResult',
    'StopReason',
    'CancellationToken',
    'create_callback',
    'ProgressTracker',
    'ALGORITHM_REGISTRY',
    'get_algorithm',
    'list_algorithms',
]
