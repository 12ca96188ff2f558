"""Epoch-based mining with fork branching."""

import asyncio
import logging
from typing import Optional

import numpy as np

from ledger_netsim.config import MINE_ALWAYS_ABOVE, MINE_NEVER_BELOW, SimulationConfig
from ledger_netsim.errors import DaemonError
from ledger_netsim.models import EventKind, NodeType, SimulationEvent
from ledger_netsim.network.base import AbstractNetwork, Node
from ledger_netsim.scheduling.periodic import Reporter, run_periodic

logger = logging.getLogger(__name__)


def roll_to_mine(probability: float, rng: np.random.Generator) -> bool:
    """Bernoulli trial for one miner; near-certain probabilities skip the draw."""
    if probability < MINE_NEVER_BELOW:
        return False
    if probability > MINE_ALWAYS_ABOVE:
        return True
    return bool(rng.random() < probability)


class MiningScheduler:
    """
    Triggers mining on a random subset of miners once per BLOCK_TIME.

    Each epoch draws up to FORK_BRANCHING miners without replacement and
    rolls FORK_PROBABILITY for each. All attempts of an epoch run
    concurrently and the epoch completes before the next one starts.
    """

    def __init__(
        self,
        network: AbstractNetwork,
        config: SimulationConfig,
        rng: np.random.Generator,
        report: Reporter,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.network = network
        self.config = config
        self.rng = rng
        self.report = report
        self.log = log or logger
        self.epoch = -1  # first epoch is 0

    async def _mine(self, node: Node, epoch: int) -> None:
        try:
            await node.daemon.mine_once()
        except DaemonError as exc:
            self.report(
                SimulationEvent(kind=EventKind.MINE, success=False, detail=str(exc), epoch=epoch)
            )
            return
        except Exception as exc:
            self.log.exception("mining on node %d failed unexpectedly", node.node_id)
            self.report(
                SimulationEvent(kind=EventKind.MINE, success=False, detail=repr(exc), epoch=epoch)
            )
            return
        self.report(
            SimulationEvent(
                kind=EventKind.MINE,
                success=True,
                detail=f"node {node.node_id} mined",
                epoch=epoch,
            )
        )

    async def mine_epoch(self) -> int:
        """Run one epoch and return the number of mining attempts made."""
        self.epoch += 1
        epoch = self.epoch

        candidates = self.network.get_random_nodes(NodeType.MINER, self.config.FORK_BRANCHING)
        chosen = [n for n in candidates if roll_to_mine(self.config.FORK_PROBABILITY, self.rng)]
        self.log.debug("epoch %d: %d of %d miners mining", epoch, len(chosen), len(candidates))

        await asyncio.gather(*(self._mine(node, epoch) for node in chosen))
        return len(chosen)

    async def run(self, stop: asyncio.Event) -> None:
        self.log.info("mining automatically")

        async def tick() -> None:
            await self.mine_epoch()

        await run_periodic(self.config.BLOCK_TIME, stop, tick)
