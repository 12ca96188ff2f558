"""Network and daemon collaborators used by the simulation engine."""

from ledger_netsim.network.base import AbstractDaemon, AbstractNetwork, Node
from ledger_netsim.network.local_network import Ledger, LocalDaemon, LocalNetwork

__all__ = ["AbstractDaemon", "AbstractNetwork", "Ledger", "LocalDaemon", "LocalNetwork", "Node"]
