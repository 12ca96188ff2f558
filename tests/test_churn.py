"""Tests for node population bootstrap and growth."""

import asyncio
from typing import List

import pytest

from ledger_netsim.config import SimulationConfig
from ledger_netsim.models import EventKind, NodeType, SimulationEvent
from ledger_netsim.scheduling.churn import NodeChurnManager, next_node_type
from tests._support.fakes import FakeNetwork, make_node


@pytest.fixture
def events() -> List[SimulationEvent]:
    return []


def make_manager(network: FakeNetwork, events: List[SimulationEvent], **overrides) -> NodeChurnManager:
    config = SimulationConfig(**{"START_NODES": 4, "MAX_NODES": 10, **overrides})
    return NodeChurnManager(network, config, events.append)


class TestNextNodeType:
    """Tests for the client/miner balancing heuristic."""

    def test_clients_short_of_ratio(self) -> None:
        """10 clients < 1.5 * 10 miners, so a client is requested."""
        assert next_node_type({NodeType.MINER: 10, NodeType.CLIENT: 10}) == NodeType.CLIENT

    def test_clients_at_ratio(self) -> None:
        """20 clients >= 15, so any type is requested."""
        assert next_node_type({NodeType.MINER: 10, NodeType.CLIENT: 20}) == NodeType.ANY

    def test_empty_network(self) -> None:
        assert next_node_type({}) == NodeType.ANY


class TestBootstrap:
    """Tests for the initial node population."""

    def test_alternating_types_and_full_mesh(self, events: List[SimulationEvent]) -> None:
        """Four start nodes are miner, client, miner, client and all six pairs connect."""
        network = FakeNetwork()
        manager = make_manager(network, events)

        asyncio.run(manager.bootstrap())

        assert network.add_requests == [
            NodeType.MINER,
            NodeType.CLIENT,
            NodeType.MINER,
            NodeType.CLIENT,
        ]
        counts = network.get_node_counts()
        assert counts[NodeType.MINER] == 2
        assert counts[NodeType.CLIENT] == 2
        assert len(network.connected_pairs) == 6
        assert len(set(network.connected_pairs)) == 6

    def test_creation_failure_does_not_block_others(self, events: List[SimulationEvent]) -> None:
        """A failed node is reported; the remaining nodes still connect."""
        network = FakeNetwork(fail_adds={1})
        manager = make_manager(network, events)

        asyncio.run(manager.bootstrap())

        assert network.size() == 3
        assert len(network.connected_pairs) == 3

        failed = [e for e in events if e.kind == EventKind.ADD_NODE and not e.success]
        assert len(failed) == 1
        assert "failed to start" in failed[0].detail
        assert any(e.kind == EventKind.CONNECT and e.success for e in events)


class TestGrowth:
    """Tests for periodic population growth."""

    def test_no_add_at_cap(self, events: List[SimulationEvent]) -> None:
        """Assert no add-node call is made once MAX_NODES is reached."""
        nodes = [make_node(i, NodeType.MINER) for i in range(4)]
        network = FakeNetwork(nodes)
        manager = make_manager(network, events, START_NODES=2, MAX_NODES=4)

        for _ in range(5):
            asyncio.run(manager.grow_once())

        assert network.add_requests == []
        assert events == []

    def test_adds_one_node_of_balanced_type(self, events: List[SimulationEvent]) -> None:
        """Below the cap, exactly one node of the heuristic's type is requested."""
        nodes = [make_node(0, NodeType.MINER), make_node(1, NodeType.CLIENT)]
        network = FakeNetwork(nodes)
        manager = make_manager(network, events)

        asyncio.run(manager.grow_once())

        assert network.add_requests == [NodeType.CLIENT]

    def test_add_failure_is_reported(self, events: List[SimulationEvent]) -> None:
        network = FakeNetwork(fail_adds={0})
        manager = make_manager(network, events)

        asyncio.run(manager.grow_once())

        assert len(events) == 1
        assert not events[0].success

    def test_run_grows_until_stopped(self, events: List[SimulationEvent]) -> None:
        """The loop bootstraps, grows to the cap and exits once stopped."""
        network = FakeNetwork()
        manager = make_manager(network, events, START_NODES=2, MAX_NODES=5, JOIN_TIME=0.01)

        async def scenario() -> None:
            stop = asyncio.Event()
            task = asyncio.create_task(manager.run(stop))
            await asyncio.sleep(0.2)
            stop.set()
            await asyncio.wait_for(task, timeout=1.0)

        asyncio.run(scenario())

        assert network.size() == 5


class FlakyNetwork(FakeNetwork):
    """Network whose node dialing fails with plain OS errors."""

    def __init__(self, fail_connect: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.fail_connect = fail_connect

    async def add_node(self, node_type: NodeType):
        if len(self.add_requests) == 0:
            self.add_requests.append(node_type)
            raise OSError("repo directory is read-only")
        return await super().add_node(node_type)

    async def connect_all_pairs(self) -> int:
        if self.fail_connect:
            raise OSError("peer dial failed")
        return await super().connect_all_pairs()


class TestUnexpectedFailures:
    """Errors outside the project's own exceptions are reported, not raised."""

    def test_os_error_on_add_is_reported(self, events: List[SimulationEvent]) -> None:
        network = FlakyNetwork()
        manager = make_manager(network, events)

        asyncio.run(manager.bootstrap())

        failed = [e for e in events if e.kind == EventKind.ADD_NODE and not e.success]
        assert len(failed) == 1
        assert "read-only" in failed[0].detail
        assert network.size() == 3
        assert len(network.connected_pairs) == 3

    def test_loop_survives_connect_failure(self, events: List[SimulationEvent]) -> None:
        """Assert growth continues after connecting the initial nodes failed."""
        network = FlakyNetwork(fail_connect=True)
        manager = make_manager(network, events, START_NODES=2, MAX_NODES=4, JOIN_TIME=0.01)

        async def scenario() -> None:
            stop = asyncio.Event()
            task = asyncio.create_task(manager.run(stop))
            await asyncio.sleep(0.2)
            stop.set()
            await asyncio.wait_for(task, timeout=1.0)

        asyncio.run(scenario())

        connect = [e for e in events if e.kind == EventKind.CONNECT]
        assert len(connect) == 1
        assert not connect[0].success
        assert "peer dial failed" in connect[0].detail
        assert network.size() == 4
