from typing import Any, Mapping, Union

from streamfall.core.config.calibration import CalibrationConfig


def ensure_typed_config(
    config: Union[CalibrationConfig, Mapping[str, Any], None] = None,
    **overrides: Any
) -> CalibrationConfig:
    """
    Ensure configuration is a CalibrationConfig instance.

    Returns ``config`` unchanged when it is already typed and no overrides are
    given, otherwise validates the merged options.
    """
    if isinstance(config, CalibrationConfig) and not overrides:
        return config
    return CalibrationConfig.from_options(config, **overrides)


__all__ = ['CalibrationConfig', 'ensure_typed_config']
