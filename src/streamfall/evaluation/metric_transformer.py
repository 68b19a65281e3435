"""
Metric Transformer for Optimization

Optimizers in streamfall always minimize. This module resolves metric names
into minimization-oriented objective callables:

- NSE (maximize): 0.8 -> -0.8 (negated)
- RMSE (minimize): 10.0 -> 10.0 (unchanged)
- PBIAS (minimize, signed): -15% -> 15 and +15% -> 15

Usage
-----
>>> from streamfall.evaluation.metric_transformer import MetricTransformer
>>> objective = MetricTransformer.as_objective('KGE')
>>> objective([1.0, 2.0, 3.0], [1.0, 2.0, 3.0])
-1.0
"""

import functools
from typing import Callable, Optional, Union

import numpy as np

from streamfall.core.exceptions import EvaluationError

from .metrics_registry import get_metric_function, get_metric_info

MetricSpec = Union[str, Callable[..., float]]


class MetricTransformer:
    """Transform metrics to the optimizer's minimization convention.

    Transformation Rules:
        - Maximize metrics (KGE, NSE, R2): negate value
        - Minimize metrics (RMSE, MAE, RSR): no transformation
        - Signed minimize metrics (PBIAS): absolute value, so that positive
          and negative bias are penalized equally
    """

    SIGNED_MINIMIZE_METRICS = {'PBIAS', 'pbias'}

    @classmethod
    def get_direction(cls, metric_name: str) -> str:
        """Get the optimization direction for a registered metric.

        Raises:
            EvaluationError: If the metric is not registered
        """
        info = get_metric_info(metric_name)
        if info is None:
            raise EvaluationError(f"Unknown metric: {metric_name}")
        return info.direction

    @classmethod
    def is_minimize_metric(cls, metric_name: str) -> bool:
        return cls.get_direction(metric_name) == 'minimize'

    @classmethod
    def transform_for_minimization(cls, metric_name: str, value: Optional[float]) -> Optional[float]:
        """Transform a metric value so that lower is always better.

        None and NaN pass through unchanged.
        """
        if value is None or np.isnan(value):
            return value

        if metric_name in cls.SIGNED_MINIMIZE_METRICS:
            return abs(value)
        if cls.is_minimize_metric(metric_name):
            return value
        return -value

    @classmethod
    def as_objective(cls, metric: MetricSpec) -> Callable[..., float]:
        """Resolve ``metric`` into a callable whose result should be minimized.

        Registered metric names are looked up and re-oriented. Callables are
        returned unchanged: they are assumed to already follow the
        minimization convention.

        Raises:
            EvaluationError: If ``metric`` is an unknown name or not callable
        """
        if callable(metric):
            return metric

        if not isinstance(metric, str):
            raise EvaluationError(f"Metric must be a name or a callable, got {type(metric).__name__}")

        func = get_metric_function(metric)
        if func is None:
            raise EvaluationError(f"Unknown metric: {metric}")

        info = get_metric_info(metric)

        @functools.wraps(func)
        def objective(observed, simulated, **kwargs):
            return cls.transform_for_minimization(info.name, func(observed, simulated, **kwargs))

        return objective
