"""
Optimization Algorithms Package

This package contains optimization algorithms implemented using the Strategy pattern.
Each algorithm can be used interchangeably through the common OptimizationAlgorithm interface.

Usage:
    from streamfall.optimization.algorithms import get_algorithm

    algorithm = get_algorithm('dds', config, logger)
    result = algorithm.optimize(...)
"""

import logging
from typing import Dict, List, Optional, Type

import numpy as np

from streamfall.core.exceptions import OptimizationError

from .base_algorithm import OptimizationAlgorithm
from .dds import DDSAlgorithm
from .de import DEAlgorithm
from .pso import PSOAlgorithm

# Algorithm registry mapping names to classes
ALGORITHM_REGISTRY: Dict[str, Type[OptimizationAlgorithm]] = {
    'dds': DDSAlgorithm,
    'de': DEAlgorithm,
    'differential_evolution': DEAlgorithm,  # Alternative name
    'pso': PSOAlgorithm,
    'particle_swarm': PSOAlgorithm,  # Alternative name
}


def normalize_algorithm_name(name: str) -> str:
    """Lower-case ``name`` and unify separators, e.g. ``'Particle-Swarm'`` -> ``'particle_swarm'``."""
    return str(name).lower().replace('-', '_').replace(' ', '_')


def get_algorithm(
    name: str,
    config,
    logger: logging.Logger,
    rng: Optional[np.random.Generator] = None,
) -> OptimizationAlgorithm:
    """
    Get an optimization algorithm instance by name.

    Args:
        name: Algorithm name (case-insensitive)
        config: CalibrationConfig instance
        logger: Logger instance
        rng: Random generator shared with the optimizer handle

    Raises:
        OptimizationError: If algorithm name is not recognized
    """
    key = normalize_algorithm_name(name)

    if key not in ALGORITHM_REGISTRY:
        raise OptimizationError(
            f"Unknown algorithm '{name}'. "
            f"Available algorithms: {sorted(ALGORITHM_REGISTRY)}"
        )

    return ALGORITHM_REGISTRY[key](config, logger, rng=rng)


def list_algorithms() -> List[str]:
    """List primary algorithm names (not aliases)."""
    return ['dds', 'de', 'pso']


__all__ = [
    'OptimizationAlgorithm',
    'DDSAlgorithm',
    'DEAlgorithm',
    'PSOAlgorithm',
    'get_algorithm',
    'list_algorithms',
    'normalize_algorithm_name',
    'ALGORITHM_REGISTRY',
]
