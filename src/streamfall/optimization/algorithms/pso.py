"""
PSO (Particle Swarm Optimization) Algorithm

A population-based metaheuristic that simulates social behavior of bird
flocking or fish schooling. Particles move through the search space guided
by their own best positions and the swarm's best position.

Reference:
    Kennedy, J. and Eberhart, R. (1995). Particle swarm optimization.
    Proceedings of ICNN'95.
"""

from typing import Any, Callable, Dict, Optional

import numpy as np

from .base_algorithm import OptimizationAlgorithm


class PSOAlgorithm(OptimizationAlgorithm):
    """Particle Swarm Optimization algorithm."""

    @property
    def name(self) -> str:
        return "PSO"

    def optimize(
        self,
        n_params: int,
        evaluate_solution: Callable[[np.ndarray], float],
        evaluate_population: Callable[[np.ndarray], np.ndarray],
        should_stop: Callable[[], bool],
        end_step: Callable[[int, float], None],
        initial_guess: Optional[np.ndarray] = None,
    ) -> Dict[str, Any]:
        """Run PSO, one swarm update per step."""
        self.logger.debug(f"Starting PSO optimization with {n_params} parameters")

        n_particles = self.population_size

        w = float(self.config.get('PSO_INERTIA', 0.7))  # Inertia weight
        c1 = float(self.config.get('PSO_COGNITIVE', 1.5))  # Cognitive coefficient
        c2 = float(self.config.get('PSO_SOCIAL', 1.5))  # Social coefficient
        v_max = float(self.config.get('PSO_V_MAX', 0.2))  # Maximum velocity

        positions = self._initial_population(n_params, initial_guess)
        velocities = self.rng.uniform(-v_max, v_max, (n_particles, n_params))

        fitness = evaluate_population(positions)

        personal_best_pos = positions.copy()
        personal_best_fit = fitness.copy()
        global_best_idx = int(np.argmin(fitness))
        global_best_pos = positions[global_best_idx].copy()
        global_best_fit = float(fitness[global_best_idx])

        end_step(0, global_best_fit)

        iteration = 0
        while not should_stop():
            iteration += 1

            r1 = self.rng.random((n_particles, n_params))
            r2 = self.rng.random((n_particles, n_params))

            cognitive = c1 * r1 * (personal_best_pos - positions)
            social = c2 * r2 * (global_best_pos - positions)

            velocities = w * velocities + cognitive + social
            velocities = np.clip(velocities, -v_max, v_max)

            positions = np.clip(positions + velocities, 0, 1)

            fitness = evaluate_population(positions)

            improved = fitness < personal_best_fit
            personal_best_pos[improved] = positions[improved]
            personal_best_fit[improved] = fitness[improved]

            if np.min(fitness) < global_best_fit:
                global_best_idx = int(np.argmin(fitness))
                global_best_pos = positions[global_best_idx].copy()
                global_best_fit = float(fitness[global_best_idx])

            end_step(iteration, global_best_fit)

        return {
            'best_solution': global_best_pos,
            'best_score': global_best_fit,
        }
