# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""Core hydrological performance metric implementations.

Every metric takes ``(observed, simulated)`` and returns a float. Pairs where
either value is NaN are dropped before scoring; NaN is returned only when no
valid pair remains or the score is undefined (e.g. zero observed variance).
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .metrics_types import ArrayLike

__all__ = [
    "_clean_data",
    "nse",
    "nnse",
    "r2",
    "adj_r2",
    "rmse",
    "mae",
    "pbias",
    "rsr",
    "kge",
    "bkge",
    "nkge",
    "kge_prime",
    "bmkge",
    "nmkge",
    "mean_nmkge",
    "kge_np",
    "bkge_np",
    "nkge_np",
    "lme",
]


def _clean_data(
    observed: ArrayLike,
    simulated: ArrayLike,
) -> Tuple[np.ndarray, np.ndarray]:
    """Clean and align observed and simulated data by removing NaN values."""
    obs = np.asarray(observed, dtype=float)
    sim = np.asarray(simulated, dtype=float)

    valid_mask = ~(np.isnan(obs) | np.isnan(sim))
    return obs[valid_mask], sim[valid_mask]


def _near_zero(value: float, obs: np.ndarray) -> bool:
    """Check if value is near zero relative to the scale of observations."""
    scale = np.mean(np.abs(obs))
    if scale == 0:
        return True
    return abs(value) < 1e-10 * scale * scale * len(obs)


def _pearson_or_zero(obs: np.ndarray, sim: np.ndarray) -> float:
    """Pearson r, with an undefined correlation (constant series) counted as 0."""
    if len(obs) < 2:
        return 0.0
    if _near_zero(np.sum((obs - np.mean(obs)) ** 2), obs):
        return 0.0
    if _near_zero(np.sum((sim - np.mean(sim)) ** 2), sim):
        return 0.0
    r = float(np.corrcoef(obs, sim)[0, 1])
    return 0.0 if np.isnan(r) else r


def _scaling(scaling: Optional[Sequence[float]]) -> Tuple[float, float, float]:
    if scaling is None:
        return 1.0, 1.0, 1.0
    s1, s2, s3 = scaling
    return float(s1), float(s2), float(s3)


def _bounded(value: float) -> float:
    return value / (2.0 - value)


def _normalized(value: float) -> float:
    return 1.0 / (2.0 - value)


# =============================================================================
# Nash-Sutcliffe family
# =============================================================================

def nse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """The Nash-Sutcliffe Efficiency score."""
    obs, sim = _clean_data(observed, simulated)
    if len(obs) == 0:
        return np.nan

    numerator = np.sum((obs - sim) ** 2)
    denominator = np.sum((obs - np.mean(obs)) ** 2)

    if _near_zero(denominator, obs):
        return np.nan

    return float(1.0 - numerator / denominator)


def nnse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Normalized Nash-Sutcliffe Efficiency, bounded between 0 and 1.

    References:
        Nossent, J., Bauwens, W., 2012. Application of a normalized
        Nash-Sutcliffe efficiency to improve the accuracy of the Sobol'
        sensitivity analysis of a hydrological model.
        EGU General Assembly Conference Abstracts 237.
    """
    return _normalized(nse(observed, simulated))


def r2(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Coefficient of determination (aliases ``nse``)."""
    return nse(observed, simulated)


def adj_r2(observed: ArrayLike, simulated: ArrayLike, p: int) -> float:
    """Adjusted R^2 for ``p`` explanatory variables."""
    obs, sim = _clean_data(observed, simulated)
    n = len(obs)
    if n - p - 1 <= 0:
        return np.nan
    return float(1.0 - (1.0 - r2(obs, sim)) * ((n - 1) / (n - p - 1)))


# =============================================================================
# Error metrics
# =============================================================================

def rmse(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Root Mean Square Error."""
    obs, sim = _clean_data(observed, simulated)
    if len(obs) == 0:
        return np.nan
    return float(np.sqrt(np.mean((sim - obs) ** 2)))


def mae(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Mean Absolute Error."""
    obs, sim = _clean_data(observed, simulated)
    if len(obs) == 0:
        return np.nan
    return float(np.mean(np.abs(obs - sim)))


def pbias(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Percent bias, positive when the simulation underestimates.

    Streamflow performance is usually considered satisfactory when NSE > 0.5,
    RSR < 0.7 and PBIAS is within +/- 25%.

    References:
        Moriasi, D.N., Arnold, J.G., Liew, M.W.V., Bingner, R.L., Harmel, R.D.,
        Veith, T.L., 2007. Model Evaluation Guidelines for Systematic
        Quantification of Accuracy in Watershed Simulations.
        Transactions of the ASABE 50, 885-900.
    """
    obs, sim = _clean_data(observed, simulated)
    if len(obs) == 0:
        return np.nan

    sum_obs = np.sum(obs)
    if sum_obs == 0:
        return np.nan

    return float(np.sum(obs - sim) * 100.0 / sum_obs)


def rsr(observed: ArrayLike, simulated: ArrayLike) -> float:
    """RMSE-observations standard deviation ratio; 0 indicates a perfect fit."""
    obs, sim = _clean_data(observed, simulated)
    if len(obs) < 2:
        return np.nan

    std_obs = np.std(obs, ddof=1)
    if std_obs == 0:
        return np.nan

    return float(rmse(obs, sim) / std_obs)


# =============================================================================
# Kling-Gupta family
# =============================================================================

def kge(
    observed: ArrayLike,
    simulated: ArrayLike,
    scaling: Optional[Sequence[float]] = None,
) -> float:
    """2009 Kling-Gupta Efficiency.

    A score of 1 is a perfect fit; below -0.41 the observed mean is a better
    predictor. ``scaling`` weights the ``r``, ``alpha`` and ``beta`` terms.

    References:
        Gupta, H.V., Kling, H., Yilmaz, K.K., Martinez, G.F., 2009.
        Decomposition of the mean squared error and NSE performance criteria.
        Journal of Hydrology 377, 80-91.
    """
    obs, sim = _clean_data(observed, simulated)
    if len(obs) < 2:
        return np.nan

    std_obs = np.std(obs, ddof=1)
    mean_obs = np.mean(obs)
    if std_obs == 0 or mean_obs == 0:
        return np.nan

    r = _pearson_or_zero(obs, sim)
    alpha = np.std(sim, ddof=1) / std_obs
    beta = np.mean(sim) / mean_obs

    rs, alphas, betas = _scaling(scaling)
    return float(1.0 - np.sqrt(rs * (r - 1) ** 2 + alphas * (alpha - 1) ** 2 + betas * (beta - 1) ** 2))


def bkge(observed: ArrayLike, simulated: ArrayLike) -> float:
    """KGE bounded between -1 and 1."""
    return _bounded(kge(observed, simulated))


def nkge(observed: ArrayLike, simulated: ArrayLike, scaling: Optional[Sequence[float]] = None) -> float:
    """KGE normalized between 0 and 1."""
    return _normalized(kge(observed, simulated, scaling=scaling))


def kge_prime(
    observed: ArrayLike,
    simulated: ArrayLike,
    scaling: Optional[Sequence[float]] = None,
) -> float:
    """Modified Kling-Gupta Efficiency (KGE', 2012).

    ``scaling`` weights timing (r), magnitude (beta) and variability (gamma).

    References:
        Kling, H., Fuchs, M., Paulin, M., 2012. Runoff conditions in the upper
        Danube basin under an ensemble of climate change scenarios.
        Journal of Hydrology 424-425, 264-277.
    """
    obs, sim = _clean_data(observed, simulated)
    if len(obs) < 2:
        return np.nan

    mean_obs = np.mean(obs)
    mean_sim = np.mean(sim)
    if mean_obs == 0:
        return np.nan

    r = _pearson_or_zero(obs, sim)

    cv_sim = np.std(sim, ddof=1) / mean_sim if mean_sim != 0 else 0.0
    cv_obs = np.std(obs, ddof=1) / mean_obs
    if cv_obs == 0 or np.isnan(cv_obs):
        cv_obs = 1.0
    gamma = cv_sim / cv_obs

    beta = mean_sim / mean_obs

    rs, betas, gammas = _scaling(scaling)
    return float(1.0 - np.sqrt(rs * (r - 1) ** 2 + betas * (beta - 1) ** 2 + gammas * (gamma - 1) ** 2))


def bmkge(observed: ArrayLike, simulated: ArrayLike, scaling: Optional[Sequence[float]] = None) -> float:
    """Modified KGE bounded between -1 and 1."""
    return _bounded(kge_prime(observed, simulated, scaling=scaling))


def nmkge(observed: ArrayLike, simulated: ArrayLike, scaling: Optional[Sequence[float]] = None) -> float:
    """Modified KGE normalized between 0 and 1."""
    return _normalized(kge_prime(observed, simulated, scaling=scaling))


def mean_nmkge(observed: ArrayLike, simulated: ArrayLike, scaling: Optional[Sequence[float]] = None) -> float:
    """Mean of NmKGE on the flows and on their reciprocals.

    Said to produce better fits for low-flow indices than mKGE.

    References:
        Garcia, F., Folton, N., Oudin, L., 2017. Which objective function to
        calibrate rainfall-runoff models for low-flow index simulations?
        Hydrological Sciences Journal 62, 1149-1166.
    """
    obs, sim = _clean_data(observed, simulated)
    with np.errstate(divide='ignore', invalid='ignore'):
        inv_obs, inv_sim = 1.0 / obs, 1.0 / sim
    finite = np.isfinite(inv_obs) & np.isfinite(inv_sim)
    return float(np.mean([
        nmkge(obs, sim, scaling=scaling),
        nmkge(inv_obs[finite], inv_sim[finite], scaling=scaling),
    ]))


def kge_np(
    observed: ArrayLike,
    simulated: ArrayLike,
    scaling: Optional[Sequence[float]] = None,
) -> float:
    """Non-parametric Kling-Gupta Efficiency.

    Uses Spearman rank correlation and the normalized flow duration curves.

    References:
        Pool, S., Vis, M., Seibert, J., 2018. Evaluating model performance:
        towards a non-parametric variant of the Kling-Gupta efficiency.
        Hydrological Sciences Journal 63, 1941-1953.
    """
    obs, sim = _clean_data(observed, simulated)
    if len(obs) < 2:
        return np.nan

    mean_obs = np.mean(obs)
    mean_sim = np.mean(sim)
    if mean_obs == 0:
        return np.nan

    fdc_obs = np.sort(obs / (len(obs) * mean_obs))
    if mean_sim == 0:
        fdc_sim = np.zeros(len(sim))
    else:
        fdc_sim = np.sort(sim / (len(sim) * mean_sim))

    alpha = 1.0 - 0.5 * np.sum(np.abs(fdc_sim - fdc_obs))
    beta = mean_sim / mean_obs

    r = stats.spearmanr(obs, sim)[0]
    if np.isnan(r):
        r = 0.0

    rs, alphas, betas = _scaling(scaling)
    return float(1.0 - np.sqrt(rs * (r - 1) ** 2 + alphas * (alpha - 1) ** 2 + betas * (beta - 1) ** 2))


def bkge_np(observed: ArrayLike, simulated: ArrayLike, scaling: Optional[Sequence[float]] = None) -> float:
    """Non-parametric KGE bounded between -1 and 1."""
    return _bounded(kge_np(observed, simulated, scaling=scaling))


def nkge_np(observed: ArrayLike, simulated: ArrayLike, scaling: Optional[Sequence[float]] = None) -> float:
    """Non-parametric KGE normalized between 0 and 1."""
    return _normalized(kge_np(observed, simulated, scaling=scaling))


def lme(observed: ArrayLike, simulated: ArrayLike) -> float:
    """Liu Mean Efficiency.

    References:
        Liu, D., 2020. A rational performance criterion for hydrological model.
        Journal of Hydrology 590, 125488.
    """
    obs, sim = _clean_data(observed, simulated)
    if len(obs) < 2:
        return np.nan

    mean_obs = np.mean(obs)
    std_obs = np.std(obs, ddof=1)
    if mean_obs == 0 or std_obs == 0:
        return np.nan

    beta = np.mean(sim) / mean_obs
    r = _pearson_or_zero(obs, sim)
    k_1 = r * (np.std(sim, ddof=1) / std_obs)

    return float(1.0 - np.sqrt((k_1 - 1) ** 2 + (beta - 1) ** 2))
