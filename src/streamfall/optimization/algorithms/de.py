"""
DE (Differential Evolution) Algorithm

Population-based evolutionary search using scaled vector differences between
population members for mutation. Strategy DE/rand/1/bin:

- rand: base vector selected at random
- 1: a single difference vector (x_r2 - x_r3)
- bin: binomial (per-parameter) crossover

Configuration:
    DE_SCALING_FACTOR (F): differential weight, default 0.5
    DE_CROSSOVER_RATE (CR): per-parameter crossover probability, default 0.9

Reference:
    Storn, R. and Price, K. (1997). Differential evolution - a simple and
    efficient heuristic for global optimization over continuous spaces.
    Journal of Global Optimization, 11(4), 341-359.
"""

from typing import Any, Callable, Dict, Optional

import numpy as np

from .base_algorithm import OptimizationAlgorithm


class DEAlgorithm(OptimizationAlgorithm):
    """Differential Evolution optimization algorithm."""

    @property
    def name(self) -> str:
        return "DE"

    def optimize(
        self,
        n_params: int,
        evaluate_solution: Callable[[np.ndarray], float],
        evaluate_population: Callable[[np.ndarray], np.ndarray],
        should_stop: Callable[[], bool],
        end_step: Callable[[int, float], None],
        initial_guess: Optional[np.ndarray] = None,
    ) -> Dict[str, Any]:
        """Run DE, one generation per step."""
        self.logger.debug(f"Starting DE optimization with {n_params} parameters")

        F = float(self.config.get('DE_SCALING_FACTOR', 0.5))
        CR = float(self.config.get('DE_CROSSOVER_RATE', 0.9))
        pop_size = max(self.population_size, 4)

        population = self.rng.uniform(0, 1, (pop_size, n_params))
        if initial_guess is not None and len(initial_guess) == n_params:
            population[0] = initial_guess

        fitness = evaluate_population(population)
        best_idx = int(np.argmin(fitness))
        end_step(0, float(fitness[best_idx]))

        generation = 0
        while not should_stop():
            generation += 1

            trials = np.empty_like(population)
            for i in range(pop_size):
                candidates = [j for j in range(pop_size) if j != i]
                r1, r2, r3 = self.rng.choice(candidates, 3, replace=False)

                mutant = population[r1] + F * (population[r2] - population[r3])
                mutant = np.clip(mutant, 0, 1)

                cross_mask = self.rng.random(n_params) < CR
                cross_mask[self.rng.integers(n_params)] = True
                trials[i] = np.where(cross_mask, mutant, population[i])

            trial_fitness = evaluate_population(trials)

            # Greedy selection
            improved = trial_fitness <= fitness
            population[improved] = trials[improved]
            fitness[improved] = trial_fitness[improved]

            best_idx = int(np.argmin(fitness))
            end_step(generation, float(fitness[best_idx]))

        return {
            'best_solution': population[best_idx].copy(),
            'best_score': float(fitness[best_idx]),
        }
