# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Calibration configuration model.

Replaces the ad hoc option bag of the calibration entry points with a typed,
validated and immutable model. Option names follow the recognised calibration
options (``MaxTime``, ``TraceInterval``, ``TargetFitness``, ``calibrate_all``,
``weighting``, ``extraction``, ``exchange``); unknown keys are retained and
passed through to the optimization algorithm (e.g. ``DDS_R``).
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from streamfall.core.constants import CalibrationDefaults
from streamfall.core.exceptions import ConfigurationError

from .base import FROZEN_CONFIG


class CalibrationConfig(BaseModel):
    """Settings for a calibration run.

    Example:
        >>> config = CalibrationConfig.from_options(MaxTime=60, weighting=0.0)
        >>> config.max_time
        60.0
        >>> config.get('DDS_R', 0.2)
        0.2
    """
    model_config = FROZEN_CONFIG

    # Optimizer budget and reporting
    max_time: float = Field(default=CalibrationDefaults.MAX_TIME, alias='MaxTime', gt=0)
    trace_interval: float = Field(default=CalibrationDefaults.TRACE_INTERVAL, alias='TraceInterval', gt=0)
    target_fitness: Optional[float] = Field(default=None, alias='TargetFitness')
    max_steps: Optional[int] = Field(default=CalibrationDefaults.MAX_STEPS, alias='MaxSteps', ge=1)
    method: str = Field(default=CalibrationDefaults.METHOD, alias='Method')
    population_size: int = Field(default=CalibrationDefaults.POPULATION_SIZE, alias='PopulationSize', ge=2)
    random_seed: Optional[int] = Field(default=None, alias='RandomSeed')

    # Traversal and objective composition
    calibrate_all: bool = Field(default=True, alias='calibrate_all')
    weighting: float = Field(default=CalibrationDefaults.WEIGHTING, alias='weighting', ge=0.0, le=1.0)
    skip_calibrated: bool = Field(default=False, alias='skip_calibrated')

    # External forcing overrides passed through to node runs
    extraction: Any = Field(default=None, alias='extraction')
    exchange: Any = Field(default=None, alias='exchange')

    @field_validator('method')
    @classmethod
    def validate_method(cls, v):
        # Import here to avoid circular imports
        from streamfall.optimization.algorithms import ALGORITHM_REGISTRY, normalize_algorithm_name

        if normalize_algorithm_name(v) not in ALGORITHM_REGISTRY:
            raise ValueError(
                f"Unknown optimization method '{v}'. "
                f"Available methods: {sorted(ALGORITHM_REGISTRY)}"
            )
        return v

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def from_options(
        cls,
        config: Union['CalibrationConfig', Mapping[str, Any], None] = None,
        **overrides: Any
    ) -> 'CalibrationConfig':
        """Build a validated config from an existing config or mapping plus overrides.

        Field names and aliases are both accepted; overrides win.

        Raises:
            ConfigurationError: If the merged options fail validation
        """
        if config is None:
            merged: Dict[str, Any] = {}
        elif isinstance(config, CalibrationConfig):
            merged = config.to_dict()
        else:
            merged = cls._to_aliases(dict(config))

        merged.update(cls._to_aliases(overrides))

        try:
            return cls(**merged)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid calibration configuration: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path], **overrides: Any) -> 'CalibrationConfig':
        """Load calibration options from a YAML file."""
        path = Path(path)
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not load calibration config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Calibration config {path} must contain a mapping")

        return cls.from_options(data, **overrides)

    @classmethod
    def _to_aliases(cls, options: Dict[str, Any]) -> Dict[str, Any]:
        """Rewrite field names to their aliases so merges cannot duplicate a field."""
        name_to_alias = {
            name: (field.alias or name) for name, field in cls.model_fields.items()
        }
        return {name_to_alias.get(key, key): value for key, value in options.items()}

    # =========================================================================
    # Dict-like access
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Return all options, including pass-through extras, keyed by alias."""
        return self.model_dump(by_alias=True)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up an option by field name, alias or pass-through key."""
        for name, field in type(self).model_fields.items():
            if key == name or key == field.alias:
                return getattr(self, name)
        extras = self.model_extra or {}
        return extras.get(key, default)

    def __getitem__(self, key: str) -> Any:
        sentinel = object()
        value = self.get(key, sentinel)
        if value is sentinel:
            raise KeyError(key)
        return value
