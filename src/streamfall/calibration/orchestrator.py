# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Calibration Orchestrator

Walks a stream network upstream-first and calibrates each node with a
derivative-free optimizer, committing the best parameters before moving
downstream.

Objective selection for a node ``A`` with downstream neighbour ``B``:

    B is a reservoir   -> B's dependent objective (A's outflow and B's level)
    A is a reservoir   -> level_obj_func (A's level)
    otherwise          -> obj_func (A's outflow)

Usage:
    >>> from streamfall.calibration import calibrate_network
    >>> results = calibrate_network(network, forcing, observed, 'NSE', MaxTime=60)
"""

import functools
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Set, Tuple, Union

import numpy as np
import pandas as pd

from streamfall.core.config import CalibrationConfig, ensure_typed_config
from streamfall.core.exceptions import EvaluationError, require_not_none
from streamfall.core.mixins import LoggingMixin, TimingMixin
from streamfall.evaluation.metric_transformer import MetricSpec, MetricTransformer
from streamfall.network.topology import NodeRef, StreamNetwork
from streamfall.nodes.base import NetworkNode
from streamfall.optimization.callbacks import CancellationToken, create_callback
from streamfall.optimization.optimizer import OptimizationResult, Optimizer

from .objectives import ObservedData, level_obj_func, obj_func, observed_for

MetricSelection = Union[MetricSpec, Mapping[str, MetricSpec]]
CalibrationOutcome = Tuple[OptimizationResult, Optimizer]


class Calibrator(LoggingMixin, TimingMixin):
    """Calibrates nodes of one network against one set of observations.

    Args:
        network: Stream network whose nodes are calibrated in place
        forcing: Forcing data passed to every node run
        observed: DataFrame (columns are node names) or mapping of node name
            to observed series
        metrics: One metric for every node, or a mapping of node name to
            metric. Metrics are registered names (oriented for minimization
            automatically) or callables returning a score to minimize.
        config: CalibrationConfig or option mapping
        logger: Logger instance
        **options: Calibration options overriding ``config``
    """

    def __init__(
        self,
        network: StreamNetwork,
        forcing: Any,
        observed: ObservedData,
        metrics: MetricSelection,
        config: Union[CalibrationConfig, Mapping[str, Any], None] = None,
        logger: Optional[logging.Logger] = None,
        **options: Any,
    ):
        self.network = network
        self.forcing = require_not_none(forcing, 'forcing')
        self.observed = observed
        self.metrics = metrics
        self.config = ensure_typed_config(config, **options)
        if logger is not None:
            self.logger = logger

        self.outcomes: Dict[int, CalibrationOutcome] = {}
        self._calibrated: Set[int] = set()

    def metric_for(self, name: str, default: Optional[Callable[..., float]] = None) -> Callable[..., float]:
        """Resolve the minimization-oriented metric for node ``name``."""
        return resolve_metric(self.metrics, name, default=default)

    def calibrate(self, target: NodeRef) -> CalibrationOutcome:
        """Calibrate ``target``, first calibrating everything upstream when ``calibrate_all``."""
        target_id = self.network.node_id(target)
        order = self.network.upstream_order(target_id) if self.config.calibrate_all else [target_id]

        for node_id in order:
            if self.config.skip_calibrated and node_id in self._calibrated:
                self.logger.debug(f"Skipping {self.network.node_name(node_id)}, already calibrated")
                continue
            self.outcomes[node_id] = self.calibrate_vertex(node_id)
            self._calibrated.add(node_id)

        return self.outcomes[target_id]

    def calibrate_vertex(self, node_id: int) -> CalibrationOutcome:
        """Calibrate a single node, assuming its upstream nodes are already calibrated."""
        node = self.network.get_node(node_id)
        next_node = self.network.downstream_node(node_id)

        objective = build_objective(
            node, next_node, self.forcing, self.observed, self.metric_for, self.config
        )
        return run_calibration(node, objective, self.config, self.logger, label=f"{node_id} ({node.name})")

    def calibrate_network(self) -> Dict[str, OptimizationResult]:
        """Calibrate every node, starting from each outlet of the network.

        Nodes this calibrator has already calibrated are calibrated again
        unless ``skip_calibrated`` is set; the last calibration wins.
        """
        _, outlets = self.network.find_inlets_and_outlets()
        with self.time_limit(f"calibrating network {self.network.name!r}"):
            for outlet in outlets:
                self.calibrate(outlet)

        return {
            self.network.node_name(node_id): result
            for node_id, (result, _) in self.outcomes.items()
        }


# =============================================================================
# Building blocks
# =============================================================================

def resolve_metric(
    metrics: MetricSelection,
    name: str,
    default: Optional[Callable[..., float]] = None,
) -> Callable[..., float]:
    """Pick the metric for node ``name`` and orient it for minimization.

    Raises:
        EvaluationError: If ``metrics`` is a mapping without an entry for
            ``name`` and no ``default`` is given
    """
    if isinstance(metrics, Mapping):
        if name not in metrics:
            if default is not None:
                return default
            raise EvaluationError(f"No metric selected for node {name}. Available: {sorted(metrics)}")
        return MetricTransformer.as_objective(metrics[name])
    return MetricTransformer.as_objective(metrics)


def build_objective(
    node: NetworkNode,
    next_node: Optional[NetworkNode],
    forcing: Any,
    observed: ObservedData,
    metric_for: Callable[..., Callable[..., float]],
    config: CalibrationConfig,
) -> Callable[[np.ndarray], float]:
    """Choose and bind the objective strategy for ``node``.

    For a downstream reservoir, its metric scores the level and the node's
    own metric (falling back to the reservoir's) scores the outflow.
    """
    run_options = {'extraction': config.extraction, 'exchange': config.exchange}

    if next_node is not None and next_node.is_reservoir:
        level_metric = metric_for(next_node.name)
        flow_metric = metric_for(node.name, default=level_metric)
        return functools.partial(
            next_node.dependent_objective,
            this_node=node,
            next_node=next_node,
            forcing=forcing,
            observed=observed,
            metric=level_metric,
            flow_metric=flow_metric,
            weighting=config.weighting,
            **run_options,
        )

    if node.is_reservoir:
        return functools.partial(
            level_obj_func,
            node=node,
            forcing=forcing,
            observed=observed_for(observed, node.name),
            metric=metric_for(node.name),
            **run_options,
        )

    return functools.partial(
        obj_func,
        node=node,
        forcing=forcing,
        observed=observed_for(observed, node.name),
        metric=metric_for(node.name),
        **run_options,
    )


def run_calibration(
    node: NetworkNode,
    objective: Callable[[np.ndarray], float],
    config: CalibrationConfig,
    logger: logging.Logger,
    label: Optional[str] = None,
) -> CalibrationOutcome:
    """Optimize ``node``'s parameters against ``objective`` and commit the best.

    Raises:
        ParameterResolutionError: If the node's parameters cannot be resolved
    """
    names, x0, bounds = node.parameter_info(with_level=False)

    token = CancellationToken()
    callback = None
    if config.target_fitness is not None:
        callback = create_callback(config.target_fitness, token)

    # Forcing overrides are bound into the objective and not kept on the handle
    optimizer_config = config.model_copy(update={'extraction': None, 'exchange': None})
    optimizer = Optimizer(
        objective,
        bounds,
        x0=x0,
        config=optimizer_config,
        callback=callback,
        token=token,
        logger=logger,
    )

    logger.info(f"Calibrating {node.name}")
    result = optimizer.run()

    logger.info(f"Calibrated {label or node.name}, with score: {result.best_fitness}")
    logger.info(f"Best Params: {dict(zip(names, result.best_candidate.tolist()))}")

    node.update_parameters(*result.best_candidate)
    return result, optimizer


# =============================================================================
# Entry points
# =============================================================================

def calibrate(
    network: StreamNetwork,
    target: NodeRef,
    forcing: Any,
    observed: ObservedData,
    metrics: MetricSelection,
    config: Union[CalibrationConfig, Mapping[str, Any], None] = None,
    logger: Optional[logging.Logger] = None,
    **options: Any,
) -> CalibrationOutcome:
    """Calibrate the node ``target`` (id or name) of ``network``.

    With ``calibrate_all`` (the default) every node upstream of ``target`` is
    calibrated first, inlets before the nodes they feed.

    Returns:
        The optimization result and optimizer handle for ``target``
    """
    calibrator = Calibrator(network, forcing, observed, metrics, config=config, logger=logger, **options)
    return calibrator.calibrate(target)


def calibrate_network(
    network: StreamNetwork,
    forcing: Any,
    observed: ObservedData,
    metrics: MetricSelection,
    config: Union[CalibrationConfig, Mapping[str, Any], None] = None,
    logger: Optional[logging.Logger] = None,
    **options: Any,
) -> Dict[str, OptimizationResult]:
    """Calibrate every node of ``network``, starting from each outlet.

    Returns:
        Final optimization result per node name
    """
    calibrator = Calibrator(network, forcing, observed, metrics, config=config, logger=logger, **options)
    return calibrator.calibrate_network()


def calibrate_node(
    node: NetworkNode,
    forcing: Any,
    observed: Any,
    metric: MetricSelection,
    next_node: Optional[NetworkNode] = None,
    config: Union[CalibrationConfig, Mapping[str, Any], None] = None,
    logger: Optional[logging.Logger] = None,
    **options: Any,
) -> CalibrationOutcome:
    """Calibrate a single node outside of a network.

    ``observed`` may be the node's own series. When ``next_node`` is a
    reservoir, it must be a DataFrame or mapping holding both nodes' series.
    """
    config = ensure_typed_config(config, **options)
    logger = logger or logging.getLogger(__name__)
    require_not_none(forcing, 'forcing')

    if not isinstance(observed, (pd.DataFrame, Mapping)):
        observed = {node.name: observed}

    objective = build_objective(
        node,
        next_node,
        forcing,
        observed,
        functools.partial(resolve_metric, metric),
        config,
    )
    return run_calibration(node, objective, config, logger)
