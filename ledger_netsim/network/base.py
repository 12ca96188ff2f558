"""Abstract collaborators: the node network and the per-node daemon."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ledger_netsim.models import NodeType


class AbstractDaemon(ABC):
    """
    Client for the ledger daemon running behind a single node.

    Every call raises DaemonError on failure. Order-book listings are
    returned raw, as newline-delimited JSON records.
    """

    @abstractmethod
    async def mine_once(self) -> None:
        """Mine a single block."""

    @abstractmethod
    async def main_wallet_address(self) -> str:
        """Return the node's main wallet address (may be empty)."""

    @abstractmethod
    async def wallet_balance(self, address: str) -> int:
        """Return the balance held by an address."""

    @abstractmethod
    async def transfer(self, source: str, target: str, amount: int) -> None:
        """Send funds between two addresses."""

    @abstractmethod
    async def submit_ask(self, miner_address: str, size: int, price: int) -> None:
        """Place a storage ask on behalf of a miner identity."""

    @abstractmethod
    async def submit_bid(self, address: str, size: int, price: int) -> None:
        """Place a storage bid from a wallet address."""

    @abstractmethod
    async def order_book_asks(self) -> str:
        """Return every ask in the order book."""

    @abstractmethod
    async def order_book_bids(self) -> str:
        """Return every bid in the order book."""

    @abstractmethod
    async def import_file(self, path: Path) -> str:
        """Import a file into the node's local store and return its content id."""

    @abstractmethod
    async def propose_deal(self, ask_id: int, bid_id: int, content_id: str) -> str:
        """Propose a storage deal and return the daemon's response."""

    @abstractmethod
    async def ensure_miner_identity(self) -> str:
        """Return the node's miner address, creating the identity if needed."""


@dataclass
class Node:
    """A participant process in the simulated network."""

    node_id: int
    node_type: NodeType
    wallet_address: str
    repo_path: Path
    daemon: AbstractDaemon
    miner_address: Optional[str] = None


class AbstractNetwork(ABC):
    """
    Owner of the node population.

    Creation, connection and random selection all go through here; the
    engine never caches node sets across ticks.
    """

    @abstractmethod
    async def add_node(self, node_type: NodeType) -> Node:
        """Create and start a node of the given type. Raises NetworkError."""

    @abstractmethod
    async def connect_all_pairs(self) -> int:
        """Connect every known node to every other one; return the pair count."""

    @abstractmethod
    def get_node_counts(self) -> Dict[NodeType, int]:
        """Count live nodes per concrete type."""

    @abstractmethod
    def get_nodes(self, node_type: NodeType) -> List[Node]:
        """List live nodes of a type (ANY matches every node)."""

    @abstractmethod
    def get_random_node(self, node_type: NodeType) -> Optional[Node]:
        """Pick one live node of a type, or None if there is none."""

    @abstractmethod
    def get_random_nodes(self, node_type: NodeType, count: int) -> List[Node]:
        """Pick up to `count` distinct live nodes of a type."""

    @abstractmethod
    def size(self) -> int:
        """Number of live nodes."""

    @abstractmethod
    async def shutdown_all(self) -> None:
        """Stop every node."""
