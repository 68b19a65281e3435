# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Stream network topology.

``StreamNetwork`` owns a directed graph of node identities (integer vertex
ids) with per-vertex metadata: the node's unique ``name`` and the ``node``
object itself. Edges point from an upstream node to its immediate
downstream node. Every vertex has at most one outgoing edge; the constraint
is enforced in ``add_edge``, the single place edges are created.
"""

import itertools
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from numbers import Integral
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import networkx as nx
import yaml

from streamfall.core.exceptions import FileOperationError, NetworkConfigurationError
from streamfall.core.mixins import LoggingMixin
from streamfall.nodes import NetworkNode, NodeRegistry

NodeRef = Union[int, str]


def _in_or_out(graph: nx.DiGraph, v: int) -> Tuple[int, bool, bool]:
    """Classify a vertex as inlet and/or outlet from its degrees.

    A vertex with no outgoing edge is an outlet, even when it also has no
    incoming edge, so an isolated vertex is reported once (as an outlet).
    """
    ins = graph.in_degree(v)
    outs = graph.out_degree(v)

    inlet = False
    outlet = False
    if outs == 0:
        outlet = True
    elif ins == 0:
        inlet = True

    return v, inlet, outlet


class StreamNetwork(LoggingMixin):
    """
    Directed graph of network nodes.

    Attributes:
        name: Description of the network
        graph: Underlying ``networkx.DiGraph`` keyed by integer node id

    Example:
        >>> sn = StreamNetwork("Example Network")
        >>> a = sn.create_node("A", {"node_type": "LinearNode"})
        >>> b = sn.create_node("B", {"node_type": "LinearNode"})
        >>> sn.add_edge(a, b)
        >>> sn.find_inlets_and_outlets()
        ([1], [2])
    """

    def __init__(self, name: str = '', logger: Optional[logging.Logger] = None):
        self.name = name
        self.graph = nx.DiGraph(description=name)
        self._ids_by_name: Dict[str, int] = {}
        self._id_counter = itertools.count(1)
        if logger is not None:
            self.logger = logger

    # =========================================================================
    # Construction
    # =========================================================================

    def create_node(self, name: str, spec: Union[NetworkNode, Mapping[str, Any]]) -> int:
        """Create a node with the given name, if it does not already exist.

        Args:
            name: Unique node name
            spec: A node instance, or a specification entry with ``node_type``

        Returns:
            The id of the new node, or of the existing node with that name
        """
        name = str(name)
        if name in self._ids_by_name:
            return self._ids_by_name[name]

        if isinstance(spec, NetworkNode):
            node = spec
        else:
            node = NodeRegistry.create(name, spec)

        nid = next(self._id_counter)
        self.graph.add_node(nid, name=name, node=node)
        self._ids_by_name[name] = nid
        self.logger.debug(f"Created node {nid} ({name}) of type {node.node_type}")

        return nid

    def add_edge(self, upstream: NodeRef, downstream: NodeRef) -> None:
        """Connect ``upstream`` to its immediate ``downstream`` node.

        Re-adding an existing edge is a no-op.

        Raises:
            NetworkConfigurationError: If ``upstream`` already has a different
                outlet, or the edge would close a loop
        """
        u = self.node_id(upstream)
        v = self.node_id(downstream)

        if self.graph.has_edge(u, v):
            return

        num_outlets = self.graph.out_degree(u) + 1
        if num_outlets > 1:
            raise NetworkConfigurationError(
                f"Streamfall currently only supports a single outlet. ({num_outlets})"
            )

        if u == v or nx.has_path(self.graph, v, u):
            raise NetworkConfigurationError(
                f"Connecting {self.node_name(u)} to {self.node_name(v)} would create a loop"
            )

        self.graph.add_edge(u, v)
        self.logger.debug(f"Connected {self.node_name(u)} -> {self.node_name(v)}")

    # =========================================================================
    # Lookup
    # =========================================================================

    def node_id(self, ref: NodeRef) -> int:
        """Resolve a node id or name to the node id."""
        if isinstance(ref, Integral) and not isinstance(ref, bool):
            nid = int(ref)
            if nid in self.graph:
                return nid
            raise NetworkConfigurationError(f"No node with id {nid} in network {self.name!r}")

        try:
            return self._ids_by_name[str(ref)]
        except KeyError:
            raise NetworkConfigurationError(
                f"No node named {ref!r} in network {self.name!r}"
            ) from None

    def node_name(self, ref: NodeRef) -> str:
        return self.graph.nodes[self.node_id(ref)]['name']

    def get_node(self, ref: NodeRef) -> NetworkNode:
        return self.graph.nodes[self.node_id(ref)]['node']

    def __getitem__(self, ref: NodeRef) -> NetworkNode:
        return self.get_node(ref)

    def __contains__(self, ref: NodeRef) -> bool:
        try:
            self.node_id(ref)
        except NetworkConfigurationError:
            return False
        return True

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def __iter__(self) -> Iterator[Tuple[int, NetworkNode]]:
        for nid, data in self.graph.nodes(data=True):
            yield nid, data['node']

    @property
    def node_ids(self) -> List[int]:
        return list(self.graph.nodes)

    @property
    def node_names(self) -> List[str]:
        return [data['name'] for _, data in self.graph.nodes(data=True)]

    def get_prop(self, ref: NodeRef, prop: str) -> Any:
        """Get a metadata property of a node."""
        nid = self.node_id(ref)
        try:
            return self.graph.nodes[nid][prop]
        except KeyError:
            raise NetworkConfigurationError(
                f"Node {self.graph.nodes[nid]['name']} has no property {prop!r}"
            ) from None

    def set_prop(self, ref: NodeRef, prop: str, value: Any) -> None:
        """Set a metadata property of a node."""
        nid = self.node_id(ref)
        if prop == 'name':
            value = str(value)
            if value in self._ids_by_name and self._ids_by_name[value] != nid:
                raise NetworkConfigurationError(f"A node named {value!r} already exists")
            del self._ids_by_name[self.graph.nodes[nid]['name']]
            self._ids_by_name[value] = nid
            self.graph.nodes[nid]['node'].name = value
        self.graph.nodes[nid][prop] = value

    # =========================================================================
    # Structure
    # =========================================================================

    def inlets(self, ref: NodeRef) -> List[int]:
        """Ids of the nodes that provide inflow to the given node."""
        return list(self.graph.predecessors(self.node_id(ref)))

    def outlets(self, ref: NodeRef) -> List[int]:
        """Id of the node immediately downstream (empty for an outlet node)."""
        return list(self.graph.successors(self.node_id(ref)))

    def downstream_node(self, ref: NodeRef) -> Optional[NetworkNode]:
        """The node immediately downstream, or None for a terminal node."""
        outs = self.outlets(ref)
        if not outs:
            return None
        return self.get_node(outs[0])

    def find_inlets_and_outlets(self, max_workers: Optional[int] = None) -> Tuple[List[int], List[int]]:
        """Find all inlets and outlets in the network.

        Each vertex is classified independently, so the checks are spread
        over a thread pool and the results concatenated.

        Returns:
            Tuple of (inlet ids, outlet ids), each sorted by id
        """
        vertices = list(self.graph.nodes)
        if not vertices:
            return [], []

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            rows = list(executor.map(partial(_in_or_out, self.graph), vertices))

        inlets: List[int] = []
        outlets: List[int] = []
        for v, is_inlet, is_outlet in rows:
            if is_inlet:
                inlets.append(v)
            elif is_outlet:
                outlets.append(v)

        return sorted(inlets), sorted(outlets)

    def upstream_order(self, ref: NodeRef) -> List[int]:
        """All nodes upstream of (and including) ``ref`` in post-order.

        Every node appears after all of its inlets; sibling inlets are visited
        in the order they were connected.
        """
        root = self.node_id(ref)
        order: List[int] = []
        stack: List[Tuple[int, bool]] = [(root, False)]
        while stack:
            nid, expanded = stack.pop()
            if expanded:
                order.append(nid)
                continue
            stack.append((nid, True))
            for inlet in reversed(self.inlets(nid)):
                stack.append((inlet, False))
        return order

    # =========================================================================
    # State
    # =========================================================================

    def reset(self) -> None:
        """Reset every node in the network."""
        for _, node in self:
            node.reset()

    # =========================================================================
    # Specification export
    # =========================================================================

    def extract_node_spec(self, ref: NodeRef) -> Dict[str, Any]:
        """Specification entry for a single node, including its connections."""
        nid = self.node_id(ref)
        in_names = [self.node_name(i) for i in self.inlets(nid)]
        out_names = [self.node_name(o) for o in self.outlets(nid)]

        node_spec = dict(self.get_node(nid).extract_spec())
        node_spec['inlets'] = in_names or None
        node_spec['outlets'] = out_names or None
        return node_spec

    def extract_network_spec(self) -> Dict[str, Dict[str, Any]]:
        """Rebuild the network specification, upstream nodes first."""
        _, outlets = self.find_inlets_and_outlets()
        spec: Dict[str, Dict[str, Any]] = {}
        for out in outlets:
            for nid in self.upstream_order(out):
                name = self.node_name(nid)
                if name not in spec:
                    spec[name] = self.extract_node_spec(nid)
        return spec

    def save_network_spec(self, path: Union[str, Path]) -> Path:
        """Write the network specification to a YAML file."""
        path = Path(path)
        spec = self.extract_network_spec()
        try:
            with open(path, 'w') as f:
                yaml.safe_dump(spec, f, sort_keys=False)
        except OSError as e:
            raise FileOperationError(f"Could not write network specification to {path}: {e}") from e
        return path

    def __repr__(self) -> str:
        return f"StreamNetwork(name={self.name!r}, nodes={len(self)})"
