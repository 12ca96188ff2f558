"""Simulation engine and its event recorder."""

from ledger_netsim.simulation.engine import SimulationEngine
from ledger_netsim.simulation.recorder import EventRecorder, SimulationSummary

__all__ = ["EventRecorder", "SimulationEngine", "SimulationSummary"]
