"""Periodic processes driving the simulation."""

from ledger_netsim.scheduling.actions import ActionScheduler
from ledger_netsim.scheduling.churn import NodeChurnManager, next_node_type
from ledger_netsim.scheduling.mining import MiningScheduler, roll_to_mine
from ledger_netsim.scheduling.periodic import Reporter, run_periodic

__all__ = [
    "ActionScheduler",
    "MiningScheduler",
    "NodeChurnManager",
    "Reporter",
    "next_node_type",
    "roll_to_mine",
    "run_periodic",
]
