"""
Progress Tracker

Counts penalized evaluations and logs optimization progress in a consistent
format at a fixed wall-clock cadence.
"""

import logging
from typing import Any, Dict

import numpy as np

from streamfall.core.mixins import format_elapsed


class ProgressTracker:
    """Tracks penalized evaluations and logs step progress.

    Args:
        trace_interval: Minimum seconds between progress lines
        logger: Logger instance
    """

    def __init__(self, trace_interval: float, logger: logging.Logger):
        self.trace_interval = trace_interval
        self.logger = logger

        self._total_evaluations: int = 0
        self._penalty_count: int = 0
        self._last_penalty_warning: int = 0
        self._last_trace: float = 0.0

    # ------------------------------------------------------------------
    # Penalty tracking
    # ------------------------------------------------------------------

    def track_evaluation(self, score: float) -> None:
        """Record an evaluation result, counting non-finite fitness as a penalty."""
        self._total_evaluations += 1
        if not np.isfinite(score):
            self._penalty_count += 1

        # Warn every 50 evaluations when the penalty rate exceeds 10%
        if (self._total_evaluations % 50 == 0
                and self._total_evaluations > self._last_penalty_warning):
            rate = self._penalty_count / self._total_evaluations
            if rate > 0.10:
                self.logger.warning(
                    f"High penalty rate: {self._penalty_count}/{self._total_evaluations} "
                    f"({rate:.1%}) evaluations returned non-finite fitness"
                )
                self._last_penalty_warning = self._total_evaluations

    def get_penalty_stats(self) -> Dict[str, Any]:
        rate = (self._penalty_count / self._total_evaluations
                if self._total_evaluations > 0 else 0.0)
        return {
            'penalty_count': self._penalty_count,
            'total_evaluations': self._total_evaluations,
            'penalty_rate': rate,
        }

    # ------------------------------------------------------------------
    # Progress logging
    # ------------------------------------------------------------------

    def maybe_log(self, algorithm_name: str, step: int, best_score: float, elapsed: float) -> bool:
        """Log progress if ``trace_interval`` seconds passed since the last line.

        Format: "{ALG} step {n} | Best: {score} | Evaluations: {k} | Elapsed: {time}"

        Returns:
            True if a line was logged
        """
        if elapsed - self._last_trace < self.trace_interval:
            return False

        self._last_trace = elapsed
        self.log_step_progress(algorithm_name, step, best_score, elapsed)
        return True

    def log_step_progress(self, algorithm_name: str, step: int, best_score: float, elapsed: float) -> None:
        msg_parts = [
            f"{algorithm_name} step {step}",
            f"Best: {best_score:.4f}",
            f"Evaluations: {self._total_evaluations}",
        ]

        if self._penalty_count > 0:
            msg_parts.append(f"Penalized: {self._penalty_count}/{self._total_evaluations}")

        msg_parts.append(f"Elapsed: {format_elapsed(elapsed)}")

        self.logger.info(" | ".join(msg_parts))
