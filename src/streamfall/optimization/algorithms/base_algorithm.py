"""
Base Algorithm Interface

Abstract base class for optimization algorithms using the Strategy pattern.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import numpy as np

from streamfall.core.config import CalibrationConfig


class OptimizationAlgorithm(ABC):
    """
    Abstract base class for optimization algorithms.

    Algorithms search the normalized unit hypercube and minimize. They receive
    evaluation and bookkeeping callbacks from the ``Optimizer`` handle, which
    owns denormalization, penalties for non-finite fitness, the stopping
    rules and the per-step callback.
    """

    def __init__(
        self,
        config: CalibrationConfig,
        logger: logging.Logger,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config
        self.logger = logger
        self.rng = rng if rng is not None else np.random.default_rng(config.random_seed)

        self.max_steps = config.max_steps
        self.population_size = config.population_size

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the algorithm name (e.g., 'DDS', 'PSO', 'DE')."""
        pass

    @abstractmethod
    def optimize(
        self,
        n_params: int,
        evaluate_solution: Callable[[np.ndarray], float],
        evaluate_population: Callable[[np.ndarray], np.ndarray],
        should_stop: Callable[[], bool],
        end_step: Callable[[int, float], None],
        initial_guess: Optional[np.ndarray] = None,
    ) -> Dict[str, Any]:
        """
        Run the optimization algorithm until ``should_stop`` returns True.

        Args:
            n_params: Number of parameters to optimize
            evaluate_solution: Callback scoring a single normalized solution
            evaluate_population: Callback scoring a population of normalized solutions
            should_stop: Checked before every step
            end_step: Called after every step with the step number and best score
            initial_guess: Optional normalized starting point

        Returns:
            Dictionary containing:
                - best_solution: Best normalized solution found
                - best_score: Best (lowest) fitness score
        """
        pass

    def _initial_population(self, n_params: int, initial_guess: Optional[np.ndarray]) -> np.ndarray:
        """Uniform random population, seeded with ``initial_guess`` when given."""
        population = self.rng.uniform(0, 1, (self.population_size, n_params))
        if initial_guess is not None and len(initial_guess) == n_params:
            population[0] = initial_guess
        return population

    def _reflect_at_bounds(self, x: np.ndarray) -> np.ndarray:
        """
        Reflect solutions at bounds instead of clipping.

        This often produces better exploration than simple clipping.
        """
        result = np.abs(x)
        result = np.where(result > 1, 2.0 - result, result)
        return np.clip(result, 0, 1)
