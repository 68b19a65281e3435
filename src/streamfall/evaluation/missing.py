"""Missing-data policies applied around raw metric functions."""

import functools
from typing import Callable, Tuple

import numpy as np

from streamfall.core.exceptions import EvaluationError, ValidationError

from .metrics_types import ArrayLike

POLICIES = ('skip', 'error')


def _as_paired_arrays(observed: ArrayLike, simulated: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    obs = np.asarray(observed, dtype=float).ravel()
    sim = np.asarray(simulated, dtype=float).ravel()
    if obs.shape != sim.shape:
        raise ValidationError(
            f"Observed and simulated series differ in length ({len(obs)} vs {len(sim)})"
        )
    return obs, sim


def handle_missing(
    metric: Callable[..., float],
    observed: ArrayLike,
    simulated: ArrayLike,
    policy: str = 'skip',
    **kwargs,
) -> float:
    """Score ``metric`` after applying a missing-data policy.

    Args:
        metric: Raw ``(observed, simulated) -> float`` function
        observed: Observed series; NaN or None marks a missing sample
        simulated: Simulated series of the same length
        policy: ``'skip'`` drops every pair where either value is missing
            before scoring; ``'error'`` raises if any value is missing
        **kwargs: Passed through to ``metric``

    Raises:
        ValidationError: Unknown policy or mismatched series lengths
        EvaluationError: Missing values found under the ``'error'`` policy
    """
    if policy not in POLICIES:
        raise ValidationError(f"Unknown missing-data policy '{policy}'. Expected one of {POLICIES}")

    obs, sim = _as_paired_arrays(observed, simulated)
    missing = np.isnan(obs) | np.isnan(sim)

    if policy == 'error':
        if missing.any():
            raise EvaluationError(f"{int(missing.sum())} missing values found in metric inputs")
        return metric(obs, sim, **kwargs)

    return metric(obs[~missing], sim[~missing], **kwargs)


def skip_missing(metric: Callable[..., float]) -> Callable[..., float]:
    """Wrap ``metric`` so missing observation/simulation pairs are dropped."""

    @functools.wraps(metric)
    def wrapper(observed, simulated, **kwargs):
        return handle_missing(metric, observed, simulated, policy='skip', **kwargs)

    return wrapper
