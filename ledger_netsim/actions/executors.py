"""Executors for the randomized actions: payments, asks, bids and deals."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import numpy as np

from ledger_netsim.config import (
    ASK_PRICE_RANGE,
    ASK_SIZE_RANGE,
    BID_PRICE_RANGE,
    BID_SIZE_RANGE,
    PAYMENT_AMOUNT,
    SimulationConfig,
)
from ledger_netsim.errors import ActionSkipped, SimulationError
from ledger_netsim.matching import extract_asks, extract_unused_bids, find_deal_pair
from ledger_netsim.models import Action, EventKind, NodeType, SimulationEvent
from ledger_netsim.network.base import AbstractNetwork, Node
from ledger_netsim.testfiles import pick_random_file

logger = logging.getLogger(__name__)


def draw_inclusive(rng: np.random.Generator, bounds: Tuple[int, int]) -> int:
    """Uniform integer draw over [low, high]."""
    low, high = bounds
    return int(rng.integers(low, high + 1))


class AbstractAction(ABC):
    """
    Base class for a single randomized action.

    Subclasses implement `_perform`, which acquires nodes from the network,
    checks its preconditions and issues one daemon call. Any failure is
    turned into a failed event; nothing is retried here.
    """

    action: Action

    def __init__(
        self,
        network: AbstractNetwork,
        config: SimulationConfig,
        rng: np.random.Generator,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.network = network
        self.config = config
        self.rng = rng
        self.log = log or logger

    async def execute(self) -> SimulationEvent:
        """Run the action once and report how it went."""
        kind = EventKind(self.action.value)
        try:
            detail = await self._perform()
        except asyncio.TimeoutError:
            return SimulationEvent(kind=kind, success=False, detail="timed out")
        except SimulationError as exc:
            return SimulationEvent(kind=kind, success=False, detail=str(exc))
        except Exception as exc:
            self.log.exception("%s action failed unexpectedly", self.action.value)
            return SimulationEvent(kind=kind, success=False, detail=repr(exc))
        return SimulationEvent(kind=kind, success=True, detail=detail)

    @abstractmethod
    async def _perform(self) -> str:
        """Carry out the action and describe what was done."""

    def _require_node(self, node_type: NodeType) -> Node:
        node = self.network.get_random_node(node_type)
        if node is None:
            raise ActionSkipped(f"no {node_type.value.lower()} nodes available")
        return node


class PaymentAction(AbstractAction):
    """Transfer a fixed amount between two distinct random nodes."""

    action = Action.PAYMENT

    async def _perform(self) -> str:
        nodes = self.network.get_random_nodes(NodeType.ANY, 2)
        if len(nodes) < 2:
            raise ActionSkipped("not enough nodes for a payment")
        sender, receiver = nodes

        source = await sender.daemon.main_wallet_address()
        target = await receiver.daemon.main_wallet_address()
        if not source or not target:
            raise ActionSkipped(f"could not get wallet addresses: {source!r} {target!r}")

        balance = await sender.daemon.wallet_balance(source)
        if balance < PAYMENT_AMOUNT:
            raise ActionSkipped(f"not enough funds in {source}: {balance}")

        # A transfer still pending after a few block times is hung
        await asyncio.wait_for(
            sender.daemon.transfer(source, target, PAYMENT_AMOUNT),
            timeout=self.config.payment_timeout,
        )
        return f"sent {PAYMENT_AMOUNT} from {source} to {target}"


class AskAction(AbstractAction):
    """Place a storage ask from a random miner."""

    action = Action.ASK

    async def _perform(self) -> str:
        size = draw_inclusive(self.rng, ASK_SIZE_RANGE)
        price = draw_inclusive(self.rng, ASK_PRICE_RANGE)

        node = self._require_node(NodeType.MINER)
        node.miner_address = await node.daemon.ensure_miner_identity()

        self.log.debug("adding ask: %s %d %d", node.miner_address, size, price)
        await node.daemon.submit_ask(node.miner_address, size, price)
        return f"ask from {node.miner_address} size={size} price={price}"


class BidAction(AbstractAction):
    """Place a storage bid from a random client."""

    action = Action.BID

    async def _perform(self) -> str:
        size = draw_inclusive(self.rng, BID_SIZE_RANGE)
        price = draw_inclusive(self.rng, BID_PRICE_RANGE)

        node = self._require_node(NodeType.CLIENT)
        address = await node.daemon.main_wallet_address()

        self.log.debug("adding bid: %s %d %d", address, size, price)
        await node.daemon.submit_bid(address, size, price)
        return f"bid from {address} size={size} price={price}"


class DealAction(AbstractAction):
    """Match one of a client's bids against the order book and propose a deal."""

    action = Action.DEAL

    async def _perform(self) -> str:
        node = self._require_node(NodeType.CLIENT)

        asks = extract_asks(await node.daemon.order_book_asks())
        bids = extract_unused_bids(await node.daemon.order_book_bids())

        ask, bid = find_deal_pair(asks, bids, node.wallet_address)
        self.log.debug(
            "deal candidate for %s: ask %d (%d, %d) bid %d (%d, %d)",
            node.wallet_address, ask.id, ask.price, ask.size, bid.id, bid.price, bid.size,
        )

        try:
            path = pick_random_file(self.config.TESTFILES_DIR, node.repo_path, self.rng)
        except OSError as exc:
            raise ActionSkipped(f"could not pick a test file: {exc}") from exc

        content_id = (await node.daemon.import_file(path)).strip()
        proposal = await node.daemon.propose_deal(ask.id, bid.id, content_id)
        return f"deal proposal: {proposal}"


def build_executors(
    network: AbstractNetwork,
    config: SimulationConfig,
    rng: np.random.Generator,
    log: Optional[logging.Logger] = None,
) -> Dict[Action, AbstractAction]:
    """Create one executor per action that has an implementation."""
    classes = (PaymentAction, AskAction, BidAction, DealAction)
    return {cls.action: cls(network, config, rng, log) for cls in classes}
