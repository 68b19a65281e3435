"""Stream network topology and construction."""

from .builder import create_network, load_network
from .topology import StreamNetwork

__all__ = ['StreamNetwork', 'create_network', 'load_network']
