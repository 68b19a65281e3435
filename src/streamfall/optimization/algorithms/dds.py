"""
DDS (Dynamically Dimensioned Search) Algorithm

A simple and effective algorithm for calibrating computationally expensive
hydrological models. DDS progressively focuses the search from global to local
as iterations progress.

Reference:
    Tolson, B.A. and Shoemaker, C.A. (2007). Dynamically dimensioned search
    algorithm for computationally efficient watershed model calibration.
    Water Resources Research, 43(1).
"""

from typing import Any, Callable, Dict, Optional

import numpy as np

from streamfall.core.constants import CalibrationDefaults

from .base_algorithm import OptimizationAlgorithm


class DDSAlgorithm(OptimizationAlgorithm):
    """Dynamically Dimensioned Search optimization algorithm."""

    @property
    def name(self) -> str:
        return "DDS"

    def optimize(
        self,
        n_params: int,
        evaluate_solution: Callable[[np.ndarray], float],
        evaluate_population: Callable[[np.ndarray], np.ndarray],
        should_stop: Callable[[], bool],
        end_step: Callable[[int, float], None],
        initial_guess: Optional[np.ndarray] = None,
    ) -> Dict[str, Any]:
        """Run DDS, one candidate evaluation per step."""
        self.logger.debug(f"Starting DDS optimization with {n_params} parameters")

        # DDS perturbation range (default 0.2, higher values explore more)
        r = float(self.config.get('DDS_R', 0.2))

        if initial_guess is not None and len(initial_guess) == n_params:
            x_best = np.array(initial_guess, dtype=float)
        else:
            x_best = self.rng.uniform(0, 1, n_params)

        f_best = evaluate_solution(x_best)
        end_step(0, f_best)

        # Perturbation probability decays over the evaluation budget
        budget = self.max_steps if self.max_steps is not None else CalibrationDefaults.DDS_HORIZON
        horizon = np.log(max(budget, 2))

        iteration = 0
        while not should_stop():
            iteration += 1

            p = 1.0 - np.log(iteration) / horizon
            p = max(1.0 / n_params, p)

            perturb_mask = self.rng.random(n_params) < p
            if not perturb_mask.any():
                perturb_mask[self.rng.integers(n_params)] = True

            x_new = x_best.copy()
            perturbation = r * self.rng.standard_normal(n_params)
            x_new[perturb_mask] = x_best[perturb_mask] + perturbation[perturb_mask]
            x_new = self._reflect_at_bounds(x_new)

            f_new = evaluate_solution(x_new)

            # DDS is greedy
            if f_new < f_best:
                x_best = x_new
                f_best = f_new

            end_step(iteration, f_best)

        return {
            'best_solution': x_best,
            'best_score': f_best,
        }
