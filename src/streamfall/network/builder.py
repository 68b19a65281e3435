"""
Network construction from a specification mapping or YAML file.

A network specification maps node names to entries of the form::

    406214:
        node_type: IHACRESNode
        inlets: null
        outlets:
            - 406219
        area: 268.77
        parameters:
            d: 84.28
            ...

``inlets`` and ``outlets`` list node names (or are null). Every node may have
at most one outlet.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from streamfall.core.exceptions import NetworkConfigurationError

from .topology import StreamNetwork

logger = logging.getLogger(__name__)


def _normalize_spec(network: Mapping[Any, Any]) -> Dict[str, Mapping[str, Any]]:
    """Key the specification by string names and check each entry is a mapping with at most one outlet."""
    normalized: Dict[str, Mapping[str, Any]] = {}
    for node, details in network.items():
        if not isinstance(details, Mapping):
            raise NetworkConfigurationError(
                f"Specification for node {node} must be a mapping, got {type(details).__name__}"
            )
        num_outlets = len(details.get('outlets') or [])
        if num_outlets > 1:
            raise NetworkConfigurationError(
                f"Streamfall currently only supports a single outlet. ({num_outlets})"
            )
        normalized[str(node)] = details
    return normalized


def _lookup(spec: Dict[str, Mapping[str, Any]], name: Any, referenced_by: str) -> Mapping[str, Any]:
    try:
        return spec[str(name)]
    except KeyError:
        raise NetworkConfigurationError(
            f"Node {referenced_by} refers to {name}, which is not defined in the network specification"
        ) from None


def create_network(
    name: str,
    network: Mapping[Any, Any],
    logger: Optional[logging.Logger] = None
) -> StreamNetwork:
    """Create a StreamNetwork from a (YAML-derived) specification.

    Args:
        name: Description of the network
        network: Mapping of node name to node specification
        logger: Optional logger for the resulting network

    Raises:
        UnsupportedNodeTypeError: If a ``node_type`` is not registered
        NetworkConfigurationError: If a node has more than one outlet or
            refers to an undefined node

    Example:
        >>> spec = yaml.safe_load(open("example_network.yml"))
        >>> sn = create_network("Example Network", spec)
    """
    spec = _normalize_spec(network)
    sn = StreamNetwork(name, logger=logger)

    for node_name, details in spec.items():
        this_id = sn.create_node(node_name, details)

        for inlet in details.get('inlets') or []:
            in_id = sn.create_node(str(inlet), _lookup(spec, inlet, node_name))
            sn.add_edge(in_id, this_id)

        for outlet in details.get('outlets') or []:
            out_id = sn.create_node(str(outlet), _lookup(spec, outlet, node_name))
            sn.add_edge(this_id, out_id)

    return sn


def load_network(name: str, path: Union[str, Path], logger: Optional[logging.Logger] = None) -> StreamNetwork:
    """Load a network specification from a YAML file and build the network."""
    path = Path(path)
    try:
        with open(path, 'r') as f:
            network = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise NetworkConfigurationError(f"Could not load network specification {path}: {e}") from e

    if not isinstance(network, Mapping):
        raise NetworkConfigurationError(f"Network specification {path} must contain a mapping")

    return create_network(name, network, logger=logger)
