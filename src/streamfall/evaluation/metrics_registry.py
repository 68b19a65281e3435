# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""Metric registry and lookup helpers."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Union, cast

from streamfall.evaluation.metrics_core import (
    bkge,
    bkge_np,
    bmkge,
    kge,
    kge_np,
    kge_prime,
    lme,
    mae,
    mean_nmkge,
    nkge,
    nkge_np,
    nmkge,
    nnse,
    nse,
    pbias,
    r2,
    rmse,
    rsr,
)
from streamfall.evaluation.metrics_types import MetricInfo

_UNBOUNDED = (float("-inf"), 1.0)

METRIC_REGISTRY: Dict[str, Dict[str, Union[Callable, MetricInfo]]] = {
    "NSE": {
        "function": nse,
        "info": MetricInfo(
            name="NSE",
            full_name="Nash-Sutcliffe Efficiency",
            range=_UNBOUNDED,
            optimal=1.0,
            direction="maximize",
            description="Measures how well simulated values match observed variance",
            reference="Nash & Sutcliffe (1970)",
        ),
    },
    "NNSE": {
        "function": nnse,
        "info": MetricInfo(
            name="NNSE",
            full_name="Normalized Nash-Sutcliffe Efficiency",
            range=(0.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="NSE rescaled onto (0, 1] as 1 / (2 - NSE)",
            reference="Nossent & Bauwens (2012)",
        ),
    },
    "R2": {
        "function": r2,
        "info": MetricInfo(
            name="R2",
            full_name="Coefficient of Determination",
            range=_UNBOUNDED,
            optimal=1.0,
            direction="maximize",
            description="Alias of NSE",
            reference="Nash & Sutcliffe (1970)",
        ),
    },
    "RMSE": {
        "function": rmse,
        "info": MetricInfo(
            name="RMSE",
            full_name="Root Mean Square Error",
            range=(0.0, float("inf")),
            optimal=0.0,
            direction="minimize",
            description="Square root of the mean squared difference",
            reference="Standard statistical metric",
        ),
    },
    "MAE": {
        "function": mae,
        "info": MetricInfo(
            name="MAE",
            full_name="Mean Absolute Error",
            range=(0.0, float("inf")),
            optimal=0.0,
            direction="minimize",
            description="Mean of absolute differences",
            reference="Standard statistical metric",
        ),
    },
    "PBIAS": {
        "function": pbias,
        "info": MetricInfo(
            name="PBIAS",
            full_name="Percent Bias",
            range=(float("-inf"), float("inf")),
            optimal=0.0,
            direction="minimize",
            description="Total volume error as a percentage of observed volume",
            reference="Moriasi et al. (2007)",
        ),
    },
    "RSR": {
        "function": rsr,
        "info": MetricInfo(
            name="RSR",
            full_name="RMSE-Observations Standard Deviation Ratio",
            range=(0.0, float("inf")),
            optimal=0.0,
            direction="minimize",
            description="RMSE divided by the standard deviation of observations",
            reference="Moriasi et al. (2007)",
        ),
    },
    "KGE": {
        "function": kge,
        "info": MetricInfo(
            name="KGE",
            full_name="Kling-Gupta Efficiency",
            range=_UNBOUNDED,
            optimal=1.0,
            direction="maximize",
            description="Decomposes NSE into correlation, variability, and bias",
            reference="Gupta et al. (2009)",
        ),
    },
    "BKGE": {
        "function": bkge,
        "info": MetricInfo(
            name="BKGE",
            full_name="Bounded Kling-Gupta Efficiency",
            range=(-1.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="KGE rescaled onto (-1, 1] as KGE / (2 - KGE)",
            reference="Mathevet et al. (2006)",
        ),
    },
    "NKGE": {
        "function": nkge,
        "info": MetricInfo(
            name="NKGE",
            full_name="Normalized Kling-Gupta Efficiency",
            range=(0.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="KGE rescaled onto (0, 1] as 1 / (2 - KGE)",
            reference="Nossent & Bauwens (2012)",
        ),
    },
    "mKGE": {
        "function": kge_prime,
        "info": MetricInfo(
            name="mKGE",
            full_name="Modified Kling-Gupta Efficiency",
            range=_UNBOUNDED,
            optimal=1.0,
            direction="maximize",
            description="KGE using coefficient of variation instead of std",
            reference="Kling et al. (2012)",
        ),
    },
    "BmKGE": {
        "function": bmkge,
        "info": MetricInfo(
            name="BmKGE",
            full_name="Bounded Modified Kling-Gupta Efficiency",
            range=(-1.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="Modified KGE rescaled onto (-1, 1]",
            reference="Kling et al. (2012)",
        ),
    },
    "NmKGE": {
        "function": nmkge,
        "info": MetricInfo(
            name="NmKGE",
            full_name="Normalized Modified Kling-Gupta Efficiency",
            range=(0.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="Modified KGE rescaled onto (0, 1]",
            reference="Kling et al. (2012)",
        ),
    },
    "mean_NmKGE": {
        "function": mean_nmkge,
        "info": MetricInfo(
            name="mean_NmKGE",
            full_name="Mean Inverse Normalized Modified Kling-Gupta Efficiency",
            range=(0.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="Mean of NmKGE on flows and on reciprocal flows, favours low flows",
            reference="Garcia et al. (2017)",
        ),
    },
    "npKGE": {
        "function": kge_np,
        "info": MetricInfo(
            name="npKGE",
            full_name="Non-parametric Kling-Gupta Efficiency",
            range=_UNBOUNDED,
            optimal=1.0,
            direction="maximize",
            description="KGE using Spearman correlation and flow duration curves",
            reference="Pool et al. (2018)",
        ),
    },
    "BnpKGE": {
        "function": bkge_np,
        "info": MetricInfo(
            name="BnpKGE",
            full_name="Bounded Non-parametric Kling-Gupta Efficiency",
            range=(-1.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="Non-parametric KGE rescaled onto (-1, 1]",
            reference="Pool et al. (2018)",
        ),
    },
    "NnpKGE": {
        "function": nkge_np,
        "info": MetricInfo(
            name="NnpKGE",
            full_name="Normalized Non-parametric Kling-Gupta Efficiency",
            range=(0.0, 1.0),
            optimal=1.0,
            direction="maximize",
            description="Non-parametric KGE rescaled onto (0, 1]",
            reference="Pool et al. (2018)",
        ),
    },
    "LME": {
        "function": lme,
        "info": MetricInfo(
            name="LME",
            full_name="Liu Mean Efficiency",
            range=_UNBOUNDED,
            optimal=1.0,
            direction="maximize",
            description="Efficiency combining scaled correlation and bias",
            reference="Liu (2020)",
        ),
    },
}

# Aliases
METRIC_REGISTRY["KGEp"] = METRIC_REGISTRY["mKGE"]
METRIC_REGISTRY["KGEnp"] = METRIC_REGISTRY["npKGE"]

_CASE_INSENSITIVE = {name.lower(): name for name in METRIC_REGISTRY}


def _resolve(name: str) -> Optional[str]:
    if name in METRIC_REGISTRY:
        return name
    return _CASE_INSENSITIVE.get(name.lower())


def get_metric_function(name: str) -> Optional[Callable]:
    """Get a metric function by name."""
    key = _resolve(name)
    if key is None:
        return None
    return cast(Callable, METRIC_REGISTRY[key]["function"])


def get_metric_info(name: str) -> Optional[MetricInfo]:
    """Get metric metadata by name."""
    key = _resolve(name)
    if key is None:
        return None
    return cast(MetricInfo, METRIC_REGISTRY[key]["info"])


def list_available_metrics() -> List[str]:
    """List all primary metric names (excluding aliases)."""
    return [name for name in METRIC_REGISTRY if name not in ("KGEp", "KGEnp")]
