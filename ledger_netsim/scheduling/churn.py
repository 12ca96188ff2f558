"""Node population bootstrap and growth."""

import asyncio
import logging
from typing import Dict, Optional

from ledger_netsim.config import CLIENT_TO_MINER_RATIO, SimulationConfig
from ledger_netsim.errors import NetworkError
from ledger_netsim.models import EventKind, NodeType, SimulationEvent
from ledger_netsim.network.base import AbstractNetwork
from ledger_netsim.scheduling.periodic import Reporter, run_periodic

logger = logging.getLogger(__name__)


def next_node_type(counts: Dict[NodeType, int]) -> NodeType:
    """Request a client while clients are short of 1.5x the miners, else any type."""
    miners = counts.get(NodeType.MINER, 0)
    clients = counts.get(NodeType.CLIENT, 0)
    if clients < miners * CLIENT_TO_MINER_RATIO:
        return NodeType.CLIENT
    return NodeType.ANY


class NodeChurnManager:
    """
    Bootstraps the initial node population and grows it up to MAX_NODES.

    Node creation and connection failures are reported and skipped; they
    never stop the loop.
    """

    def __init__(
        self,
        network: AbstractNetwork,
        config: SimulationConfig,
        report: Reporter,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.network = network
        self.config = config
        self.report = report
        self.log = log or logger

    async def _add_node(self, node_type: NodeType) -> None:
        try:
            node = await self.network.add_node(node_type)
        except NetworkError as exc:
            self.report(SimulationEvent(kind=EventKind.ADD_NODE, success=False, detail=str(exc)))
            return
        except Exception as exc:
            self.log.exception("adding a %s node failed unexpectedly", node_type.value)
            self.report(SimulationEvent(kind=EventKind.ADD_NODE, success=False, detail=repr(exc)))
            return
        self.report(
            SimulationEvent(
                kind=EventKind.ADD_NODE,
                success=True,
                detail=f"{node.node_type.value} node {node.node_id}",
            )
        )

    async def bootstrap(self) -> None:
        """Start START_NODES nodes concurrently, alternating miner/client, then connect them all."""
        self.log.info("starting with %d nodes", self.config.START_NODES)

        node_types = [
            NodeType.MINER if i % 2 == 0 else NodeType.CLIENT
            for i in range(self.config.START_NODES)
        ]
        await asyncio.gather(*(self._add_node(t) for t in node_types))

        try:
            pairs = await self.network.connect_all_pairs()
        except NetworkError as exc:
            self.report(SimulationEvent(kind=EventKind.CONNECT, success=False, detail=str(exc)))
            return
        except Exception as exc:
            self.log.exception("connecting nodes failed unexpectedly")
            self.report(SimulationEvent(kind=EventKind.CONNECT, success=False, detail=repr(exc)))
            return
        self.report(
            SimulationEvent(kind=EventKind.CONNECT, success=True, detail=f"{pairs} pairs connected")
        )

    async def grow_once(self) -> None:
        """Add one node unless the network is already at MAX_NODES."""
        if self.network.size() >= self.config.MAX_NODES:
            return
        await self._add_node(next_node_type(self.network.get_node_counts()))

    async def run(self, stop: asyncio.Event) -> None:
        await self.bootstrap()
        await run_periodic(self.config.JOIN_TIME, stop, self.grow_once)
