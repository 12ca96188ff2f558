"""Random action dispatch."""

import asyncio
import logging
from typing import Dict, List, Optional, Set

import numpy as np

from ledger_netsim.actions.executors import AbstractAction
from ledger_netsim.models import Action
from ledger_netsim.scheduling.periodic import Reporter, run_periodic

logger = logging.getLogger(__name__)


class ActionScheduler:
    """
    Dispatches one uniformly chosen action every ACTION_TIME.

    Dispatch is fire-and-forget: the loop does not wait for the action,
    so actions overlap each other and later ticks. Each action's event is
    delivered through `report` when its task finishes.
    """

    def __init__(
        self,
        actions: List[Action],
        executors: Dict[Action, AbstractAction],
        interval: float,
        rng: np.random.Generator,
        report: Reporter,
        log: Optional[logging.Logger] = None,
    ) -> None:
        missing = [a.value for a in actions if a not in executors]
        if missing:
            raise ValueError(f"no executor for actions: {', '.join(missing)}")

        self.actions = list(actions)
        self.executors = executors
        self.interval = interval
        self.rng = rng
        self.report = report
        self.log = log or logger
        self.in_flight: Set["asyncio.Task[None]"] = set()

    async def _execute(self, action: Action) -> None:
        event = await self.executors[action].execute()
        self.report(event)

    def dispatch_once(self) -> Optional["asyncio.Task[None]"]:
        """Start one random action as a background task; None if no actions are enabled."""
        if not self.actions:
            return None

        action = self.actions[int(self.rng.integers(len(self.actions)))]
        self.log.debug("dispatching %s", action.value)

        task = asyncio.create_task(self._execute(action), name=f"action:{action.value}")
        self.in_flight.add(task)
        task.add_done_callback(self.in_flight.discard)
        return task

    async def drain(self) -> None:
        """Wait for every action still in flight."""
        if self.in_flight:
            await asyncio.gather(*list(self.in_flight))

    async def run(self, stop: asyncio.Event) -> None:
        async def tick() -> None:
            self.dispatch_once()

        await run_periodic(self.interval, stop, tick)
