"""
Core infrastructure for Streamfall: exceptions, constants, configuration and
shared mixins.
"""

from streamfall.core.constants import CalibrationDefaults, ModelDefaults
from streamfall.core.exceptions import (
    ConfigurationError,
    EvaluationError,
    FileOperationError,
    NetworkConfigurationError,
    OptimizationError,
    ParameterResolutionError,
    StreamfallError,
    UnsupportedNodeTypeError,
    ValidationError,
)

__all__ = [
    'CalibrationDefaults',
    'ModelDefaults',
    'StreamfallError',
    'ConfigurationError',
    'NetworkConfigurationError',
    'UnsupportedNodeTypeError',
    'ParameterResolutionError',
    'ValidationError',
    'OptimizationError',
    'EvaluationError',
    'FileOperationError',
]
