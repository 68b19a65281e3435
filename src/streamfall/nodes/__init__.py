"""
Node contract and node-type registry.

Concrete process models are provided by users and registered with
``NodeRegistry`` so network specifications can refer to them by name.
"""

from .base import NetworkNode, NodeKind, Parameter, ParameterInfo, ReservoirNode
from .registry import NodeRegistry

__all__ = [
    'NetworkNode',
    'ReservoirNode',
    'NodeKind',
    'Parameter',
    'ParameterInfo',
    'NodeRegistry',
]
