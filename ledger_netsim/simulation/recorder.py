"""Collector for events reported by the engine's periodic processes."""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import pandas as pd

from ledger_netsim.models import EventKind, SimulationEvent

logger = logging.getLogger(__name__)


@dataclass
class SimulationSummary:
    """Aggregate counts over a simulation run."""

    success_counts: Dict[EventKind, int] = field(default_factory=dict)
    failure_counts: Dict[EventKind, int] = field(default_factory=dict)
    mined_epochs: int = 0  # epochs with at least one mining attempt

    @property
    def total_events(self) -> int:
        """Total number of events recorded."""
        return sum(self.success_counts.values()) + sum(self.failure_counts.values())

    @property
    def success_rate(self) -> float:
        """Share of successful events (0.0 to 1.0)."""
        if self.total_events == 0:
            return 0.0
        return sum(self.success_counts.values()) / self.total_events

    def attempts(self, kind: EventKind) -> int:
        """Number of events of a kind, successful or not."""
        return self.success_counts.get(kind, 0) + self.failure_counts.get(kind, 0)


class EventRecorder:
    """
    Default consumer of simulation events.

    Stamps each event with the time since `mark_start` (or creation), logs
    it (successes at INFO, failures at WARNING) and keeps it for the run
    summary.
    """

    def __init__(
        self,
        log: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.log = log or logger
        self._clock = clock
        self._started = clock()
        self.events: List[SimulationEvent] = []

    def mark_start(self) -> None:
        """Measure event timestamps from now on."""
        self._started = self._clock()

    def record(self, event: SimulationEvent) -> None:
        event = event.model_copy(update={"timestamp": self._clock() - self._started})
        self.events.append(event)

        if event.success:
            self.log.info("[%s] %s", event.kind.value, event.detail)
        else:
            self.log.warning("[%s] failed: %s", event.kind.value, event.detail)

    def summary(self) -> SimulationSummary:
        successes = Counter(e.kind for e in self.events if e.success)
        failures = Counter(e.kind for e in self.events if not e.success)
        epochs = {e.epoch for e in self.events if e.epoch is not None}
        return SimulationSummary(
            success_counts=dict(successes),
            failure_counts=dict(failures),
            mined_epochs=len(epochs),
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Events as a DataFrame, one row per event in arrival order."""
        columns = list(SimulationEvent.model_fields)
        return pd.DataFrame([e.model_dump(mode="json") for e in self.events], columns=columns)
