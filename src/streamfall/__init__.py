# src/streamfall/__init__.py
from .streamfall_version import __version__

from .calibration import (
    calibrate,
    calibrate_network,
    calibrate_node,
    load_calibration,
    save_calibration,
)
from .core.config import CalibrationConfig
from .network import StreamNetwork, create_network, load_network
from .nodes import NetworkNode, NodeKind, NodeRegistry, Parameter, ReservoirNode

__all__ = [
    "__version__",
    "CalibrationConfig",
    "StreamNetwork",
    "create_network",
    "load_network",
    "NetworkNode",
    "ReservoirNode",
    "NodeKind",
    "NodeRegistry",
    "Parameter",
    "calibrate",
    "calibrate_network",
    "calibrate_node",
    "save_calibration",
    "load_calibration",
]
