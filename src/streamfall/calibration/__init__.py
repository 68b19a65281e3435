"""Objective functions, calibration orchestration and calibration persistence."""

from .objectives import dependent_obj_func, level_obj_func, obj_func, observed_for
from .orchestrator import (
    Calibrator,
    build_objective,
    calibrate,
    calibrate_network,
    calibrate_node,
    resolve_metric,
    run_calibration,
)
from .persistence import load_calibration, save_calibration

__all__ = [
    'obj_func',
    'level_obj_func',
    'dependent_obj_func',
    'observed_for',
    'Calibrator',
    'calibrate',
    'calibrate_network',
    'calibrate_node',
    'build_objective',
    'resolve_metric',
    'run_calibration',
    'save_calibration',
    'load_calibration',
]
