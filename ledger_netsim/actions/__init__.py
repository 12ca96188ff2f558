"""Randomized economic actions injected into the network."""

from ledger_netsim.actions.executors import (
    AbstractAction,
    AskAction,
    BidAction,
    DealAction,
    PaymentAction,
    build_executors,
)

__all__ = [
    "AbstractAction",
    "AskAction",
    "BidAction",
    "DealAction",
    "PaymentAction",
    "build_executors",
]
