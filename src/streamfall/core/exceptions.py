# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Custom exception hierarchy for Streamfall.

This module defines a hierarchy of exceptions that provide clear, specific
error types for the failure modes of network construction, objective
evaluation and calibration.
"""

import logging
from contextlib import contextmanager
from typing import Optional, TypeVar


class StreamfallError(Exception):
    """
    Base exception for all Streamfall-specific errors.

    All custom exceptions in Streamfall inherit from this class, so every
    Streamfall error can be caught with a single except clause.
    """
    pass


class ConfigurationError(StreamfallError):
    """
    Configuration-related errors.

    Raised when:
    - Calibration options are invalid
    - A configuration file cannot be loaded or parsed
    """
    pass


class NetworkConfigurationError(ConfigurationError):
    """
    Network specification errors.

    Raised when:
    - A node is given more than one outlet
    - A network specification references an undefined node
    - A node name or id cannot be found in the network
    """
    pass


class UnsupportedNodeTypeError(ConfigurationError):
    """
    Raised when a network specification names a ``node_type`` that has not
    been registered with the node registry.
    """
    pass


class ParameterResolutionError(ConfigurationError):
    """
    Parameter information for a node could not be resolved.

    Raised when:
    - A node declares no calibratable parameters
    - Names, defaults and bounds differ in length
    - A lower bound exceeds its upper bound
    """
    pass


class ValidationError(StreamfallError):
    """
    Data or parameter validation failures.

    Raised when:
    - Parameter vectors have the wrong length
    - Values are out of their acceptable range
    """
    pass


class OptimizationError(StreamfallError):
    """
    Optimizer setup failures.

    Raised when:
    - An unknown optimization algorithm is requested
    - Search bounds are empty or malformed

    A non-converged or poor optimization run is not an error.
    """
    pass


class EvaluationError(StreamfallError):
    """
    Metric and observation lookup failures.

    Raised when:
    - A metric name is not registered
    - No observed series exists for a node being scored
    """
    pass


class FileOperationError(StreamfallError):
    """
    File I/O operation failures.

    Raised when:
    - A calibration artifact cannot be written or read
    - A network specification file cannot be written
    """
    pass


# =============================================================================
# Validation Helpers
# =============================================================================

T = TypeVar('T')


def require(condition: bool, message: str, error_type: type = None) -> None:
    """
    Validate a condition, raising an exception if it fails.

    Args:
        condition: The condition that must be True
        message: Error message if condition is False
        error_type: Exception type to raise (default: ValidationError)

    Raises:
        ValidationError (or specified error_type) if condition is False

    Example:
        >>> require(0.0 <= weighting <= 1.0, "weighting must lie in [0, 1]")
    """
    if error_type is None:
        error_type = ValidationError
    if not condition:
        raise error_type(message)


def require_not_none(value: Optional[T], name: str, error_type: type = None) -> T:
    """
    Validate that a value is not None, returning it if valid.

    Args:
        value: The value to check
        name: Name of the value (for error message)
        error_type: Exception type to raise (default: ValidationError)

    Returns:
        The value if it is not None
    """
    if error_type is None:
        error_type = ValidationError
    if value is None:
        raise error_type(f"{name} must not be None")
    return value


@contextmanager
def streamfall_error_handler(
    operation: str,
    logger: Optional[logging.Logger] = None,
    reraise: bool = True,
    error_type: type = StreamfallError
):
    """
    Context manager for standardized error handling.

    Streamfall errors are logged and re-raised as-is, any other exception is
    logged and converted to ``error_type``.

    Args:
        operation: Description of the operation being performed (for logging)
        logger: Logger instance for error messages. If None, errors are not logged.
        reraise: Whether to re-raise the exception after handling (default: True)
        error_type: Streamfall exception type to convert generic exceptions to

    Example:
        >>> with streamfall_error_handler("saving calibration", logger, error_type=FileOperationError):
        ...     pickle.dump((result, optimizer), fh)
    """
    try:
        yield
    except StreamfallError:
        if logger:
            logger.error(f"Error during {operation}", exc_info=True)
        if reraise:
            raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}", exc_info=True)
        if reraise:
            raise error_type(f"Failed during {operation}: {e}") from e


__all__ = [
    # Base
    'StreamfallError',
    # Domain exceptions
    'ConfigurationError',
    'NetworkConfigurationError',
    'UnsupportedNodeTypeError',
    'ParameterResolutionError',
    'ValidationError',
    'OptimizationError',
    'EvaluationError',
    'FileOperationError',
    # Helpers
    'require',
    'require_not_none',
    'streamfall_error_handler',
]
