"""Central registry mapping ``node_type`` names to node classes."""

import logging
from typing import Any, Dict, List, Mapping, Type

from streamfall.core.exceptions import UnsupportedNodeTypeError

from .base import NetworkNode

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Registry of node implementations available to network specifications.

    Usage:
        @NodeRegistry.register('IHACRESNode')
        class IHACRESNode(NetworkNode):
            ...

        # Later, build a node from its specification
        node = NodeRegistry.create('406219', {'node_type': 'IHACRESNode', ...})
    """

    _node_types: Dict[str, Type[NetworkNode]] = {}

    @classmethod
    def register(cls, node_type: str):
        """Decorator to register a node class under ``node_type``."""
        def decorator(node_cls):
            logger.debug(f"Registering node type {node_type}: {node_cls}")
            cls._node_types[node_type] = node_cls
            node_cls.type_name = node_type
            return node_cls
        return decorator

    @classmethod
    def unregister(cls, node_type: str) -> None:
        cls._node_types.pop(node_type, None)

    @classmethod
    def get(cls, node_type: str) -> Type[NetworkNode]:
        """Get the class registered for ``node_type``.

        Raises:
            UnsupportedNodeTypeError: If nothing is registered under that name
        """
        try:
            return cls._node_types[node_type]
        except KeyError:
            raise UnsupportedNodeTypeError(
                f"Unsupported node type: {node_type}. "
                f"Registered types: {cls.list_node_types()}"
            ) from None

    @classmethod
    def create(cls, name: str, spec: Mapping[str, Any]) -> NetworkNode:
        """Instantiate a node from its network specification entry."""
        if 'node_type' not in spec:
            raise UnsupportedNodeTypeError(f"Node {name} does not define a node_type")

        node_cls = cls.get(spec['node_type'])
        try:
            return node_cls.from_spec(name, spec)
        except TypeError as e:
            raise UnsupportedNodeTypeError(
                f"Unsupported node type: {spec['node_type']} ({e})"
            ) from e

    @classmethod
    def list_node_types(cls) -> List[str]:
        return sorted(cls._node_types)

    @classmethod
    def is_registered(cls, node_type: str) -> bool:
        return node_type in cls._node_types
