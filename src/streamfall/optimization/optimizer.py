# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Optimizer handle.

Wraps a derivative-free search algorithm behind a minimize-given-bounds
contract: the caller supplies an objective closure over a parameter vector
and per-parameter bounds, and receives the best candidate and its fitness.

The handle owns everything around the search loop:

- scaling between parameter space and the unit hypercube the algorithms use
- treating NaN fitness as the worst possible score
- the wall-clock (``MaxTime``) and evaluation (``MaxSteps``) budgets
- cooperative cancellation through a ``CancellationToken``
- the per-step callback and progress logging every ``TraceInterval`` seconds
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from streamfall.core.config import CalibrationConfig, ensure_typed_config
from streamfall.core.constants import ModelDefaults
from streamfall.core.exceptions import OptimizationError
from streamfall.core.mixins import LoggingMixin, format_elapsed

from .algorithms import get_algorithm, normalize_algorithm_name
from .callbacks import CancellationToken
from .progress import ProgressTracker


class StopReason(str, Enum):
    """Why an optimization run ended."""

    MAX_TIME = 'max_time'
    MAX_STEPS = 'max_steps'
    CANCELLED = 'cancelled'


@dataclass(eq=False)
class OptimizationResult:
    """Outcome of a single optimizer run. Parameters are in natural units."""

    best_candidate: np.ndarray
    best_fitness: float
    num_evaluations: int
    num_steps: int
    elapsed_time: float
    stop_reason: StopReason
    method: str

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, OptimizationResult):
            return NotImplemented
        return (
            np.array_equal(self.best_candidate, other.best_candidate)
            and self.best_fitness == other.best_fitness
            and self.num_evaluations == other.num_evaluations
            and self.num_steps == other.num_steps
            and self.elapsed_time == other.elapsed_time
            and self.stop_reason == other.stop_reason
            and self.method == other.method
        )


class Optimizer(LoggingMixin):
    """Minimize ``objective`` over box ``bounds``.

    Args:
        objective: Callable taking a parameter vector and returning a fitness
            to minimize
        bounds: One ``(low, high)`` pair per parameter
        x0: Optional starting point in natural units
        config: CalibrationConfig or option mapping (``MaxTime``,
            ``MaxSteps``, ``TraceInterval``, ``Method``, ...)
        callback: Called as ``callback(optimizer)`` once per algorithm step
        token: Cancellation token; a private one is created if omitted
        logger: Logger instance

    Example:
        >>> opt = Optimizer(lambda x: float(np.sum(x ** 2)), [(-1, 1)] * 2,
        ...                 config={'MaxTime': 5, 'MaxSteps': 500, 'RandomSeed': 1})
        >>> result = opt.run()
        >>> result.best_fitness < 0.01
        True
    """

    # Attributes that only make sense for a live run and are not persisted
    _TRANSIENT = ('_objective', 'callback', 'token', '_logger', '_tracker', '_rng', '_start')

    def __init__(
        self,
        objective: Callable[[np.ndarray], float],
        bounds: Sequence[Tuple[float, float]],
        x0: Optional[Sequence[float]] = None,
        config: Union[CalibrationConfig, Mapping[str, Any], None] = None,
        callback: Optional[Callable[['Optimizer'], None]] = None,
        token: Optional[CancellationToken] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = ensure_typed_config(config)
        self.method = normalize_algorithm_name(self.config.method)

        self.bounds = np.asarray(bounds, dtype=float)
        if self.bounds.size == 0:
            raise OptimizationError("Cannot optimize without parameter bounds")
        if self.bounds.ndim != 2 or self.bounds.shape[1] != 2:
            raise OptimizationError(f"Bounds must be (low, high) pairs, got shape {self.bounds.shape}")
        if np.any(self.bounds[:, 0] > self.bounds[:, 1]):
            raise OptimizationError(f"Lower bounds exceed upper bounds: {self.bounds.tolist()}")

        self.x0 = None if x0 is None else np.asarray(x0, dtype=float)
        if self.x0 is not None and self.x0.shape != (self.n_params,):
            raise OptimizationError(
                f"Initial guess has {self.x0.size} values for {self.n_params} parameters"
            )

        self._objective = objective
        self.callback = callback
        self.token = token if token is not None else CancellationToken()
        if logger is not None:
            self.logger = logger

        self.best_candidate: Optional[np.ndarray] = None
        self.best_fitness: float = ModelDefaults.PENALTY_SCORE
        self.num_evaluations = 0
        self.num_steps = 0
        self.stop_reason: Optional[StopReason] = None
        self.result: Optional[OptimizationResult] = None

        self._tracker: Optional[ProgressTracker] = None
        self._rng: Optional[np.random.Generator] = None
        self._start: float = 0.0

    @property
    def n_params(self) -> int:
        return len(self.bounds)

    # ------------------------------------------------------------------
    # Parameter scaling
    # ------------------------------------------------------------------

    def denormalize(self, x: np.ndarray) -> np.ndarray:
        low, high = self.bounds[:, 0], self.bounds[:, 1]
        return low + np.clip(x, 0, 1) * (high - low)

    def normalize(self, params: np.ndarray) -> np.ndarray:
        low, high = self.bounds[:, 0], self.bounds[:, 1]
        span = high - low
        with np.errstate(divide='ignore', invalid='ignore'):
            x = np.where(span > 0, (params - low) / span, 0.0)
        return np.clip(x, 0, 1)

    # ------------------------------------------------------------------
    # Algorithm callbacks
    # ------------------------------------------------------------------

    def _evaluate_solution(self, x: np.ndarray) -> float:
        params = self.denormalize(x)
        fitness = float(self._objective(params))
        if np.isnan(fitness):
            fitness = ModelDefaults.PENALTY_SCORE

        self.num_evaluations += 1
        self._tracker.track_evaluation(fitness)

        if self.best_candidate is None or fitness < self.best_fitness:
            self.best_fitness = fitness
            self.best_candidate = params

        return fitness

    def _evaluate_population(self, population: np.ndarray) -> np.ndarray:
        return np.array([self._evaluate_solution(x) for x in population], dtype=float)

    def elapsed_time(self) -> float:
        return time.monotonic() - self._start

    def should_stop(self) -> bool:
        """Check the stopping rules, recording the first one that applies."""
        if self.token.is_cancelled:
            self.stop_reason = StopReason.CANCELLED
        elif self.elapsed_time() >= self.config.max_time:
            self.stop_reason = StopReason.MAX_TIME
        elif self.config.max_steps is not None and self.num_evaluations >= self.config.max_steps:
            self.stop_reason = StopReason.MAX_STEPS
        else:
            return False
        return True

    def _end_step(self, step: int, best_score: float) -> None:
        self.num_steps = step
        self._tracker.maybe_log(self.method.upper(), step, best_score, self.elapsed_time())
        if self.callback is not None:
            self.callback(self)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> OptimizationResult:
        """Search until a budget is exhausted or the run is cancelled."""
        if self._objective is None:
            raise OptimizationError("Optimizer has no objective; restored handles cannot be re-run")

        self.best_candidate = None
        self.best_fitness = ModelDefaults.PENALTY_SCORE
        self.num_evaluations = 0
        self.num_steps = 0
        self.stop_reason = None

        self._rng = np.random.default_rng(self.config.random_seed)
        self._tracker = ProgressTracker(self.config.trace_interval, self.logger)
        algorithm = get_algorithm(self.method, self.config, self.logger, rng=self._rng)

        initial_guess = None if self.x0 is None else self.normalize(self.x0)

        self._start = time.monotonic()
        algorithm.optimize(
            n_params=self.n_params,
            evaluate_solution=self._evaluate_solution,
            evaluate_population=self._evaluate_population,
            should_stop=self.should_stop,
            end_step=self._end_step,
            initial_guess=initial_guess,
        )
        elapsed = self.elapsed_time()

        self.result = OptimizationResult(
            best_candidate=np.array(self.best_candidate, dtype=float),
            best_fitness=self.best_fitness,
            num_evaluations=self.num_evaluations,
            num_steps=self.num_steps,
            elapsed_time=elapsed,
            stop_reason=self.stop_reason,
            method=self.method,
        )

        if not np.isfinite(self.best_fitness):
            self.logger.warning(
                f"{algorithm.name} finished without a finite fitness "
                f"after {self.num_evaluations} evaluations"
            )

        self.logger.debug(
            f"{algorithm.name} stopped ({self.stop_reason.value}) | Best: {self.best_fitness:.4f} | "
            f"Evaluations: {self.num_evaluations} | Elapsed: {format_elapsed(elapsed)}"
        )
        return self.result

    def shutdown(self) -> None:
        """Request the run to stop before the next step."""
        self.token.cancel()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def __getstate__(self):
        state = self.__dict__.copy()
        for key in self._TRANSIENT:
            state.pop(key, None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._objective = None
        self.callback = None
        self.token = CancellationToken()
        self._tracker = None
        self._rng = None
        self._start = 0.0

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Optimizer):
            return NotImplemented
        return (
            self.method == other.method
            and self.config == other.config
            and np.array_equal(self.bounds, other.bounds)
            and _optional_array_equal(self.x0, other.x0)
            and _optional_array_equal(self.best_candidate, other.best_candidate)
            and self.best_fitness == other.best_fitness
            and self.num_evaluations == other.num_evaluations
            and self.num_steps == other.num_steps
            and self.stop_reason == other.stop_reason
            and self.result == other.result
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"Optimizer(method={self.method!r}, n_params={self.n_params}, "
            f"best_fitness={self.best_fitness})"
        )


def _optional_array_equal(a: Optional[np.ndarray], b: Optional[np.ndarray]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return np.array_equal(a, b)
