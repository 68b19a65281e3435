"""Network specifications and observation sets for tests."""

import pandas as pd
import pytest

from streamfall.network import create_network

from fixtures.node_fixtures import linear_flow


@pytest.fixture
def chain_spec():
    """Two headwaters joining at C, which drains to the outlet D.

        A   B
         \\ /
          C
          |
          D
    """
    return {
        'A': {'node_type': 'LinearNode', 'inlets': None, 'outlets': ['C'], 'gain': 0.8},
        'B': {'node_type': 'LinearNode', 'inlets': None, 'outlets': ['C']},
        'C': {'node_type': 'LinearNode', 'inlets': ['A', 'B'], 'outlets': ['D']},
        'D': {'node_type': 'LinearNode', 'inlets': ['C'], 'outlets': None},
    }


@pytest.fixture
def chain_network(chain_spec):
    return create_network('Chain', chain_spec)


@pytest.fixture
def reservoir_spec():
    """Flow node A feeding reservoir B."""
    return {
        'A': {'node_type': 'LinearNode', 'outlets': ['B']},
        'B': {'node_type': 'TankNode', 'inlets': ['A'], 'parameters': {'release': 0.5, 'initial_level': 10.0}},
    }


@pytest.fixture
def reservoir_network(reservoir_spec):
    return create_network('Reservoir', reservoir_spec)


@pytest.fixture
def chain_observed(forcing):
    """Observed flows generated from known LinearNode parameters."""
    return pd.DataFrame({
        'A': linear_flow(forcing, 0.8, 0.5),
        'B': linear_flow(forcing, 1.2, 0.0),
        'C': linear_flow(forcing, 0.5, 1.0),
        'D': linear_flow(forcing, 1.5, 2.0),
    })
