# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Meta-metrics

Higher-order wrappers that build new ``(observed, simulated) -> float``
metrics from existing ones:

- ``bound``: rescale an efficiency score in (-inf, 1] onto (-1, 1]
- ``normalize``: rescale an efficiency score in (-inf, 1] onto (0, 1]
- ``mean_inverse``: combine the score on the raw and reciprocal series
- ``split``: score fixed-size chunks and reduce them to one value

Example:
    >>> from streamfall.evaluation import kge, bound, split
    >>> bounded_kge = bound(kge)
    >>> annual_kge = split(kge, n_members=365)
"""

import functools
from typing import Callable, List, Optional

import numpy as np

from streamfall.core.exceptions import ValidationError

from .metrics_core import _clean_data, nnse
from .metrics_types import ArrayLike

Combiner = Callable[[np.ndarray], float]


def bound(metric: Callable[..., float]) -> Callable[..., float]:
    """Bound ``metric`` as ``m / (2 - m)``."""

    @functools.wraps(metric)
    def wrapper(observed, simulated, *args, **kwargs):
        m = metric(observed, simulated, *args, **kwargs)
        return m / (2.0 - m)

    wrapper.__name__ = f"bounded_{getattr(metric, '__name__', 'metric')}"
    return wrapper


def normalize(metric: Callable[..., float]) -> Callable[..., float]:
    """Normalize ``metric`` as ``1 / (2 - m)``."""

    @functools.wraps(metric)
    def wrapper(observed, simulated, *args, **kwargs):
        m = metric(observed, simulated, *args, **kwargs)
        return 1.0 / (2.0 - m)

    wrapper.__name__ = f"normalized_{getattr(metric, '__name__', 'metric')}"
    return wrapper


def inverse_metric(
    observed: ArrayLike,
    simulated: ArrayLike,
    metric: Callable[..., float],
    comb_method: Combiner = np.mean,
) -> float:
    """Combine ``metric`` on the raw series and on their reciprocals.

    Samples whose reciprocal is undefined (zero flow) are dropped from the
    inverse score only.
    """
    obs, sim = _clean_data(observed, simulated)
    with np.errstate(divide='ignore', invalid='ignore'):
        inv_obs = 1.0 / obs
        inv_sim = 1.0 / sim
    finite = np.isfinite(inv_obs) & np.isfinite(inv_sim)

    scores = np.array([metric(obs, sim), metric(inv_obs[finite], inv_sim[finite])], dtype=float)
    return float(comb_method(scores))


def mean_inverse(metric: Callable[..., float], comb_method: Combiner = np.mean) -> Callable[..., float]:
    """Build a metric averaging ``metric`` over raw and reciprocal series."""

    def wrapper(observed, simulated):
        return inverse_metric(observed, simulated, metric, comb_method=comb_method)

    wrapper.__name__ = f"mean_inverse_{getattr(metric, '__name__', 'metric')}"
    wrapper.__doc__ = metric.__doc__
    return wrapper


def naive_split_metric(
    observed: ArrayLike,
    simulated: ArrayLike,
    n_members: int = 365,
    metric: Optional[Callable[..., float]] = None,
) -> List[float]:
    """Score consecutive chunks of ``n_members`` samples.

    The final chunk holds the remainder and may be shorter.

    Returns:
        One score per chunk, in series order
    """
    if metric is None:
        metric = nnse

    if n_members < 1:
        raise ValidationError(f"n_members must be >= 1, got {n_members}")

    obs = np.asarray(observed, dtype=float).ravel()
    sim = np.asarray(simulated, dtype=float).ravel()
    if obs.shape != sim.shape:
        raise ValidationError(
            f"Observed and simulated series differ in length ({len(obs)} vs {len(sim)})"
        )

    return [
        metric(obs[start:start + n_members], sim[start:start + n_members])
        for start in range(0, len(obs), n_members)
    ]


def split(
    metric: Callable[..., float],
    n_members: int = 365,
    comb_method: Combiner = np.mean,
) -> Callable[..., float]:
    """Build a metric that reduces per-chunk scores with ``comb_method``."""

    def wrapper(observed, simulated):
        scores = naive_split_metric(observed, simulated, n_members=n_members, metric=metric)
        return float(comb_method(np.asarray(scores, dtype=float)))

    wrapper.__name__ = f"split_{getattr(metric, '__name__', 'metric')}"
    wrapper.__doc__ = metric.__doc__
    return wrapper
