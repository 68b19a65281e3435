# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Objective functions for node calibration.

Every objective follows the same trial pattern: apply the candidate
parameters, run the node(s) over the forcing period, score the simulated
series against observations, then reset the node(s) so no state leaks into
the next trial. Scores are computed under the ``'skip'`` missing-data policy
and are oriented for minimization.

Strategies:
    obj_func: outflow of a single node
    level_obj_func: storage level of a standalone reservoir node
    dependent_obj_func: upstream node paired with its downstream neighbour,
        blended by ``weighting`` when the downstream node is a reservoir
"""

from typing import Any, Callable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from streamfall.core.constants import CalibrationDefaults
from streamfall.core.exceptions import EvaluationError, require
from streamfall.evaluation.missing import handle_missing
from streamfall.nodes.base import NetworkNode

Metric = Callable[..., float]
ObservedData = Union[pd.DataFrame, Mapping[str, Any]]


def observed_for(observed: ObservedData, name: str) -> np.ndarray:
    """Get the observed series for the node called ``name``.

    Raises:
        EvaluationError: If no series is recorded under ``name``
    """
    if isinstance(observed, pd.DataFrame):
        if name not in observed.columns:
            raise EvaluationError(f"No observations for node {name}. Available columns: {list(observed.columns)}")
        return observed[name].to_numpy(dtype=float)

    if isinstance(observed, Mapping):
        if name not in observed:
            raise EvaluationError(f"No observations for node {name}. Available: {sorted(observed)}")
        return np.asarray(observed[name], dtype=float)

    raise EvaluationError(
        f"Observed data must be a DataFrame or a mapping of node name to series, got {type(observed).__name__}"
    )


def _score(metric: Metric, observed: Any, simulated: Any) -> float:
    return float(handle_missing(metric, observed, simulated, policy='skip'))


def obj_func(
    params: Sequence[float],
    node: NetworkNode,
    forcing: Any,
    observed: Any,
    metric: Metric,
    inflow: Optional[np.ndarray] = None,
    extraction: Any = None,
    exchange: Any = None,
) -> float:
    """Score ``node`` on its outflow."""
    node.update_parameters(*params)
    try:
        node.run(forcing, inflow=inflow, extraction=extraction, exchange=exchange)
        return _score(metric, observed, node.outflow)
    finally:
        node.reset()


def level_obj_func(
    params: Sequence[float],
    node: NetworkNode,
    forcing: Any,
    observed: Any,
    metric: Metric,
    inflow: Optional[np.ndarray] = None,
    extraction: Any = None,
    exchange: Any = None,
) -> float:
    """Score a reservoir ``node`` on its storage level."""
    node.update_parameters(*params)
    try:
        node.run(forcing, inflow=inflow, extraction=extraction, exchange=exchange)
        return _score(metric, observed, node.level)
    finally:
        node.reset()


def dependent_obj_func(
    params: Sequence[float],
    this_node: NetworkNode,
    next_node: NetworkNode,
    forcing: Any,
    observed: ObservedData,
    metric: Metric,
    weighting: float = CalibrationDefaults.WEIGHTING,
    flow_metric: Optional[Metric] = None,
    inflow: Optional[np.ndarray] = None,
    extraction: Any = None,
    exchange: Any = None,
) -> float:
    """Score ``this_node`` together with the node immediately downstream.

    ``this_node`` is run with the candidate parameters, then ``next_node``
    is run with that outflow as its inflow.

    When ``next_node`` is a reservoir, ``weighting`` places a weight of ``w``
    on the outflow score of ``this_node`` and ``1 - w`` on the level score of
    ``next_node``:

    - ``w == 0``: level score only
    - ``0 < w < 1``: ``w * flow_score + (1 - w) * level_score``
    - ``w == 1``: flow score only

    Otherwise a reservoir ``this_node`` scores ``0.0`` (it only holds state at
    this stage) and any other node is scored on its outflow.

    Args:
        params: Candidate parameters for ``this_node``
        this_node: Node under calibration
        next_node: Downstream neighbour, kept fixed
        forcing: Forcing data passed to both runs
        observed: Observed series keyed by node name
        metric: Scores the reservoir level, and the outflow when
            ``flow_metric`` is not given
        weighting: Blend factor in [0, 1]
        flow_metric: Scores the outflow of ``this_node``

    Raises:
        ValidationError: If ``weighting`` is outside [0, 1]
    """
    require(0.0 <= weighting <= 1.0, f"weighting must be within [0, 1], got {weighting}")
    flow_metric = flow_metric or metric

    this_node.update_parameters(*params)
    try:
        this_node.run(forcing, inflow=inflow, extraction=extraction, exchange=exchange)
        next_node.run(forcing, inflow=this_node.outflow, extraction=extraction, exchange=exchange)

        if next_node.is_reservoir:
            if weighting == 0.0:
                return _score(metric, observed_for(observed, next_node.name), next_node.level)

            flow_score = _score(flow_metric, observed_for(observed, this_node.name), this_node.outflow)
            if weighting == 1.0:
                return flow_score

            level_score = _score(metric, observed_for(observed, next_node.name), next_node.level)
            return weighting * flow_score + (1.0 - weighting) * level_score

        if this_node.is_reservoir:
            return 0.0

        return _score(flow_metric, observed_for(observed, this_node.name), this_node.outflow)
    finally:
        this_node.reset()
        next_node.reset()
