"""Top-level simulation engine wiring the three periodic processes."""

import asyncio
import logging
from typing import List, Optional

import numpy as np

from ledger_netsim.actions.executors import build_executors
from ledger_netsim.config import SimulationConfig, format_config
from ledger_netsim.network.base import AbstractNetwork
from ledger_netsim.scheduling.actions import ActionScheduler
from ledger_netsim.scheduling.churn import NodeChurnManager
from ledger_netsim.scheduling.mining import MiningScheduler
from ledger_netsim.scheduling.periodic import Reporter
from ledger_netsim.simulation.recorder import EventRecorder

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Runs node churn, mining and random actions against a network.

    `start` launches the periodic processes as background tasks and returns
    at once; they stop after the stop event is set and their current tick
    finishes. Mining runs only when enabled in the configuration.
    """

    def __init__(
        self,
        network: AbstractNetwork,
        config: SimulationConfig,
        report: Optional[Reporter] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        """
        Build the engine and its components.

        Args:
            network: Collaborator owning the node population.
            config: Validated run configuration.
            report: Receives every event; defaults to a fresh EventRecorder.
            log: Logger handed to every component.
        """
        self.network = network
        self.config = config
        self.log = log or logger

        if report is None:
            self.recorder: Optional[EventRecorder] = EventRecorder(self.log)
            report = self.recorder.record
        else:
            self.recorder = None
        self.report = report

        self.rng = np.random.default_rng(config.SEED)

        self.churn = NodeChurnManager(network, config, report, self.log)
        self.mining = MiningScheduler(network, config, self.rng, report, self.log)
        self.actions = ActionScheduler(
            config.enabled_actions(),
            build_executors(network, config, self.rng, self.log),
            config.ACTION_TIME,
            self.rng,
            report,
            self.log,
        )
        self._tasks: List["asyncio.Task[None]"] = []

    def start(self, stop: asyncio.Event) -> None:
        """Launch the periodic processes. Must be called from a running event loop."""
        if self._tasks:
            raise RuntimeError("simulation already started")

        if self.recorder is not None:
            self.recorder.mark_start()
        self.log.info("randomizer running with params:\n%s", format_config(self.config))

        if self.config.ACTIONS.MINE:
            self._tasks.append(asyncio.create_task(self.mining.run(stop), name="mining"))
        self._tasks.append(asyncio.create_task(self.churn.run(stop), name="churn"))
        self._tasks.append(asyncio.create_task(self.actions.run(stop), name="actions"))

    async def wait(self) -> None:
        """
        Wait for the periodic processes to stop, then for actions still in flight.

        If a loop dies with an exception the remaining loops are cancelled,
        in-flight actions are still drained, and the first error is re-raised.
        """
        if not self._tasks:
            return

        done, pending = await asyncio.wait(self._tasks, return_when=asyncio.FIRST_EXCEPTION)
        failed = [t for t in done if not t.cancelled() and t.exception() is not None]
        if failed:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        try:
            await self.actions.drain()
        finally:
            for task in failed:
                self.log.error(
                    "%s loop stopped with %r", task.get_name(), task.exception()
                )
        if failed:
            raise failed[0].exception()

    async def run(self, stop: asyncio.Event) -> None:
        self.start(stop)
        await self.wait()
