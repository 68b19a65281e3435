# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 Streamfall Team

"""
Node Contract

Abstract base classes every network node implements. The calibration core
depends only on this interface: running a node over a forcing period,
resetting its transient state, updating its parameters and describing its
parameters and bounds. Process models (rainfall-runoff equations, storage
rules) live in concrete subclasses registered with ``NodeRegistry``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from streamfall.core.exceptions import ParameterResolutionError, ValidationError


class NodeKind(str, Enum):
    """Closed set of node variants understood by the objective layer."""

    FLOW = 'flow'
    RESERVOIR = 'reservoir'


@dataclass
class Parameter:
    """A calibratable node parameter."""

    name: str
    value: float
    bounds: Tuple[float, float]
    level: bool = False
    """True for parameters that only affect storage level."""


ParameterInfo = Tuple[List[str], np.ndarray, List[Tuple[float, float]]]


class NetworkNode(ABC):
    """
    Base class for all nodes in a stream network.

    A node owns a transient outflow series produced by ``run`` and cleared by
    ``reset``, plus an ordered set of parameters with bounds.

    Subclasses declare their parameters by passing ``Parameter`` records to
    ``__init__`` and implement ``run`` and ``reset``.
    """

    kind: ClassVar[NodeKind] = NodeKind.FLOW
    type_name: ClassVar[Optional[str]] = None
    """Name the class is registered under, set by ``NodeRegistry.register``."""

    def __init__(
        self,
        name: str,
        parameters: Sequence[Parameter] = (),
        area: float = 0.0,
    ):
        self.name = str(name)
        self.area = float(area)
        self._parameters: Dict[str, Parameter] = {}
        for param in parameters:
            self._parameters[param.name] = param
        self.outflow = np.array([], dtype=float)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_spec(cls, name: str, spec: Mapping[str, Any]) -> 'NetworkNode':
        """Create a node from a network specification entry.

        The structural keys ``node_type``, ``inlets`` and ``outlets`` are
        stripped, a nested ``parameters`` mapping is flattened, and the
        remaining keys are passed to the constructor as keyword arguments.
        """
        kwargs = {
            k: v for k, v in spec.items()
            if k not in ('node_type', 'inlets', 'outlets', 'parameters')
        }
        nested = spec.get('parameters')
        if isinstance(nested, Mapping):
            kwargs.update(nested)
        return cls(name, **kwargs)

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    @abstractmethod
    def run(
        self,
        forcing: Any,
        inflow: Optional[np.ndarray] = None,
        extraction: Any = None,
        exchange: Any = None,
    ) -> None:
        """Run the node over the forcing period, filling its output series in place."""

    def reset(self) -> None:
        """Clear transient output so the next run starts from the initial state."""
        self.outflow = np.array([], dtype=float)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    @property
    def parameters(self) -> List[Parameter]:
        return list(self._parameters.values())

    def get_parameter(self, name: str) -> float:
        return self._parameters[name].value

    def _selected_parameters(self, with_level: bool) -> List[Parameter]:
        return [p for p in self._parameters.values() if with_level or not p.level]

    def update_parameters(self, *values: float) -> None:
        """Assign parameter values in declaration order.

        Accepts either the values for the non-level parameters (as returned by
        ``parameter_info(with_level=False)``) or for all parameters.
        """
        values = [float(v) for v in np.ravel(values)]
        non_level = self._selected_parameters(with_level=False)
        every = self._selected_parameters(with_level=True)

        if len(values) == len(non_level):
            targets = non_level
        elif len(values) == len(every):
            targets = every
        else:
            raise ValidationError(
                f"Node {self.name} expects {len(non_level)} or {len(every)} "
                f"parameter values, got {len(values)}"
            )

        for param, value in zip(targets, values):
            param.value = value

    def parameter_info(self, with_level: bool = False) -> ParameterInfo:
        """Return parameter names, current values (defaults) and bounds.

        Args:
            with_level: Include parameters that only affect storage level

        Raises:
            ParameterResolutionError: If the node has no usable parameters or
                its bounds are inconsistent
        """
        selected = self._selected_parameters(with_level)
        if not selected:
            raise ParameterResolutionError(
                f"Node {self.name} declares no calibratable parameters"
            )

        names = [p.name for p in selected]
        defaults = np.array([p.value for p in selected], dtype=float)
        bounds: List[Tuple[float, float]] = []
        for p in selected:
            try:
                low, high = (float(b) for b in p.bounds)
            except (TypeError, ValueError) as e:
                raise ParameterResolutionError(
                    f"Invalid bounds {p.bounds!r} for parameter {p.name} of node {self.name}"
                ) from e
            if not (np.isfinite(low) and np.isfinite(high)) or low > high:
                raise ParameterResolutionError(
                    f"Invalid bounds ({low}, {high}) for parameter {p.name} of node {self.name}"
                )
            bounds.append((low, high))

        return names, defaults, bounds

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def node_type(self) -> str:
        return vars(type(self)).get('type_name') or type(self).__name__

    @property
    def is_reservoir(self) -> bool:
        return self.kind is NodeKind.RESERVOIR

    def extract_spec(self) -> Dict[str, Any]:
        """Describe this node as a network specification entry."""
        return {
            'node_type': self.node_type,
            'area': self.area,
            'parameters': {p.name: float(p.value) for p in self._parameters.values()},
        }

    def __repr__(self) -> str:
        return f"{self.node_type}(name={self.name!r})"


class ReservoirNode(NetworkNode):
    """
    Base class for storage nodes.

    Reservoir nodes additionally produce a storage level series and carry the
    dependent-objective strategy used when they sit immediately downstream of
    the node being calibrated.
    """

    kind: ClassVar[NodeKind] = NodeKind.RESERVOIR

    def __init__(
        self,
        name: str,
        parameters: Sequence[Parameter] = (),
        area: float = 0.0,
    ):
        super().__init__(name, parameters=parameters, area=area)
        self.level = np.array([], dtype=float)

    def reset(self) -> None:
        super().reset()
        self.level = np.array([], dtype=float)

    @property
    def dependent_objective(self) -> Callable[..., float]:
        """Objective used when calibrating the node immediately upstream."""
        # Import here to avoid circular imports
        from streamfall.calibration.objectives import dependent_obj_func
        return dependent_obj_func
