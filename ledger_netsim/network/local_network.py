"""In-process network whose daemons share one simulated ledger."""

import asyncio
import hashlib
import logging
from itertools import combinations
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from ledger_netsim.errors import DaemonError, NetworkError
from ledger_netsim.models import Ask, Bid, Deal, NodeType
from ledger_netsim.network.base import AbstractDaemon, AbstractNetwork, Node

logger = logging.getLogger(__name__)

BLOCK_REWARD: int = 10_000


class Ledger:
    """
    Shared state behind every LocalDaemon: balances, order book and deals.

    Operations are synchronous and never await, so they are atomic with
    respect to the event loop.
    """

    def __init__(self) -> None:
        self.height = 0
        self.balances: Dict[str, int] = {}
        self.asks: List[Ask] = []
        self.bids: List[Bid] = []
        self.deals: List[Deal] = []
        self.content: Dict[str, bytes] = {}

    def open_account(self, address: str) -> None:
        self.balances.setdefault(address, 0)

    def mine_block(self, miner_wallet: str) -> int:
        self.height += 1
        self.balances[miner_wallet] = self.balances.get(miner_wallet, 0) + BLOCK_REWARD
        return self.height

    def transfer(self, source: str, target: str, amount: int) -> None:
        if amount <= 0:
            raise DaemonError(f"invalid transfer amount: {amount}")
        if self.balances.get(source, 0) < amount:
            raise DaemonError(f"insufficient funds in {source}")
        if target not in self.balances:
            raise DaemonError(f"unknown address: {target}")
        self.balances[source] -= amount
        self.balances[target] += amount

    def add_ask(self, owner: str, size: int, price: int) -> Ask:
        ask = Ask(id=len(self.asks), price=price, size=size, owner=owner)
        self.asks.append(ask)
        return ask

    def add_bid(self, owner: str, size: int, price: int) -> Bid:
        bid = Bid(id=len(self.bids), price=price, size=size, owner=owner)
        self.bids.append(bid)
        return bid

    def store(self, data: bytes) -> str:
        content_id = "bafk" + hashlib.sha256(data).hexdigest()[:40]
        self.content[content_id] = data
        return content_id

    def propose_deal(self, ask_id: int, bid_id: int, content_id: str) -> Deal:
        if not 0 <= ask_id < len(self.asks):
            raise DaemonError(f"unknown ask: {ask_id}")
        if not 0 <= bid_id < len(self.bids):
            raise DaemonError(f"unknown bid: {bid_id}")
        bid = self.bids[bid_id]
        if bid.used:
            raise DaemonError(f"bid {bid_id} already used")
        if content_id not in self.content:
            raise DaemonError(f"unknown content: {content_id}")

        self.bids[bid_id] = bid.model_copy(update={"used": True})
        deal = Deal(ask_id=ask_id, bid_id=bid_id, content_id=content_id)
        self.deals.append(deal)
        return deal

    @staticmethod
    def listing(records) -> str:
        """Serialize records the way the daemon lists them: one JSON object per line."""
        return "".join(record.model_dump_json() + "\n" for record in records)


class LocalDaemon(AbstractDaemon):
    """Daemon stand-in operating directly on a shared Ledger."""

    def __init__(self, ledger: Ledger, wallet_address: str, miner_seed: str) -> None:
        self._ledger = ledger
        self._wallet_address = wallet_address
        self._miner_seed = miner_seed
        self._miner_address: Optional[str] = None
        self.running = True

        ledger.open_account(wallet_address)

    async def _call(self) -> None:
        # Yield once so concurrent callers interleave as they would over RPC
        await asyncio.sleep(0)
        if not self.running:
            raise DaemonError(f"daemon for {self._wallet_address} is not running")

    async def mine_once(self) -> None:
        await self._call()
        self._ledger.mine_block(self._wallet_address)

    async def main_wallet_address(self) -> str:
        await self._call()
        return self._wallet_address

    async def wallet_balance(self, address: str) -> int:
        await self._call()
        return self._ledger.balances.get(address, 0)

    async def transfer(self, source: str, target: str, amount: int) -> None:
        await self._call()
        self._ledger.transfer(source, target, amount)

    async def submit_ask(self, miner_address: str, size: int, price: int) -> None:
        await self._call()
        if miner_address != self._miner_address:
            raise DaemonError(f"{miner_address} is not this node's miner")
        self._ledger.add_ask(miner_address, size, price)

    async def submit_bid(self, address: str, size: int, price: int) -> None:
        await self._call()
        self._ledger.add_bid(address, size, price)

    async def order_book_asks(self) -> str:
        await self._call()
        return Ledger.listing(self._ledger.asks)

    async def order_book_bids(self) -> str:
        await self._call()
        return Ledger.listing(self._ledger.bids)

    async def import_file(self, path: Path) -> str:
        await self._call()
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise DaemonError(f"could not import {path}: {exc}") from exc
        return self._ledger.store(data)

    async def propose_deal(self, ask_id: int, bid_id: int, content_id: str) -> str:
        await self._call()
        deal = self._ledger.propose_deal(ask_id, bid_id, content_id)
        return deal.model_dump_json()

    async def ensure_miner_identity(self) -> str:
        await self._call()
        if self._miner_address is None:
            self._miner_address = f"miner-{self._miner_seed}"
            logger.debug("created miner identity %s", self._miner_address)
        return self._miner_address


class LocalNetwork(AbstractNetwork):
    """
    Network of LocalDaemon nodes sharing a single Ledger.

    Each node gets a repo directory under `root_dir`. Random selection uses
    a seeded numpy Generator so runs are reproducible.
    """

    def __init__(self, root_dir: str | Path, seed: int = 42) -> None:
        self.root_dir = Path(root_dir)
        self.ledger = Ledger()
        self.rng = np.random.default_rng(seed)
        self.connections: Set[Tuple[int, int]] = set()
        self._nodes: Dict[int, Node] = {}
        self._next_id = 0

    async def add_node(self, node_type: NodeType) -> Node:
        if node_type == NodeType.ANY:
            node_type = NodeType.MINER if self.rng.random() < 0.5 else NodeType.CLIENT

        node_id = self._next_id
        self._next_id += 1

        repo_path = self.root_dir / f"node-{node_id}"
        try:
            repo_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise NetworkError(f"could not create repo for node {node_id}: {exc}") from exc

        wallet_address = f"wallet-{node_id:04d}"
        daemon = LocalDaemon(self.ledger, wallet_address, miner_seed=f"{node_id:04d}")
        await asyncio.sleep(0)

        node = Node(
            node_id=node_id,
            node_type=node_type,
            wallet_address=wallet_address,
            repo_path=repo_path,
            daemon=daemon,
        )
        self._nodes[node_id] = node
        logger.debug("started %s node %d", node_type.value, node_id)
        return node

    async def connect_all_pairs(self) -> int:
        connected = 0
        for a, b in combinations(sorted(self._nodes), 2):
            await asyncio.sleep(0)
            self.connections.add((a, b))
            connected += 1
        return connected

    def get_node_counts(self) -> Dict[NodeType, int]:
        counts = {NodeType.MINER: 0, NodeType.CLIENT: 0}
        for node in self._nodes.values():
            counts[node.node_type] += 1
        return counts

    def get_nodes(self, node_type: NodeType) -> List[Node]:
        return [
            node
            for _, node in sorted(self._nodes.items())
            if node_type == NodeType.ANY or node.node_type == node_type
        ]

    def get_random_node(self, node_type: NodeType) -> Optional[Node]:
        nodes = self.get_random_nodes(node_type, 1)
        return nodes[0] if nodes else None

    def get_random_nodes(self, node_type: NodeType, count: int) -> List[Node]:
        candidates = self.get_nodes(node_type)
        count = min(count, len(candidates))
        if count <= 0:
            return []
        indices = self.rng.choice(len(candidates), size=count, replace=False)
        return [candidates[i] for i in indices]

    def size(self) -> int:
        return len(self._nodes)

    async def shutdown_all(self) -> None:
        for node in self._nodes.values():
            if isinstance(node.daemon, LocalDaemon):
                node.daemon.running = False
        logger.info("shut down %d nodes", len(self._nodes))
        self._nodes.clear()
