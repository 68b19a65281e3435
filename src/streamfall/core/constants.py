"""
Default values shared across Streamfall.

Centralizes the calibration defaults so the configuration model, the
optimizer and the orchestrator agree on a single source of truth.
"""


class CalibrationDefaults:
    """Default calibration settings."""

    MAX_TIME = 300.0
    """Wall-clock optimization budget per node, in seconds."""

    TRACE_INTERVAL = 30.0
    """Seconds between optimizer progress reports."""

    MAX_STEPS = None
    """Maximum number of objective evaluations per node. None leaves runs bounded by time only."""

    DDS_HORIZON = 10000
    """Evaluation horizon over which DDS narrows its search when MaxSteps is unset."""

    WEIGHTING = 0.5
    """Blend factor between upstream flow fit and downstream level fit."""

    METHOD = 'dds'
    """Default optimization algorithm."""

    POPULATION_SIZE = 50
    """Population size for population-based algorithms (DE, PSO)."""


class ModelDefaults:
    """Defaults used when evaluating candidate parameter sets."""

    PENALTY_SCORE = float('inf')
    """Fitness assigned to evaluations that produce a non-finite score.

    Optimizers minimize, so the penalty is the worst possible value.
    """

    TEMP_FILE_PREFIX = 'temp'
    """Prefix for calibration artifacts saved without an explicit path."""

    TEMP_FILE_SUFFIX = '.tmp'
    """Suffix for calibration artifacts saved without an explicit path."""
