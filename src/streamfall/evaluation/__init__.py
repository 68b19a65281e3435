"""Performance metrics, missing-data policies and metric composition."""

from .meta_metrics import bound, inverse_metric, mean_inverse, naive_split_metric, normalize, split
from .metric_transformer import MetricTransformer
from .metrics_core import (
    adj_r2,
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
from .metrics_registry import (
    METRIC_REGISTRY,
    get_metric_function,
    get_metric_info,
    list_available_metrics,
)
from .metrics_types import MetricInfo
from .missing import handle_missing, skip_missing

__all__ = [
    # Metrics
    'nse', 'nnse', 'r2', 'adj_r2', 'rmse', 'mae', 'pbias', 'rsr',
    'kge', 'bkge', 'nkge', 'kge_prime', 'bmkge', 'nmkge', 'mean_nmkge',
    'kge_np', 'bkge_np', 'nkge_np', 'lme',
    # Missing data
    'handle_missing', 'skip_missing',
    # Meta-metrics
    'bound', 'normalize', 'inverse_metric', 'mean_inverse', 'naive_split_metric', 'split',
    # Registry
    'METRIC_REGISTRY', 'MetricInfo', 'get_metric_function', 'get_metric_info',
    'list_available_metrics', 'MetricTransformer',
]
