"""Tests for random action dispatch."""

import asyncio
from collections import Counter
from typing import List

import numpy as np
import pytest

from ledger_netsim.actions.executors import AbstractAction, BidAction
from ledger_netsim.config import SimulationConfig
from ledger_netsim.models import Action, EventKind, NodeType, SimulationEvent
from ledger_netsim.scheduling.actions import ActionScheduler
from tests._support.fakes import FakeDaemon, FakeNetwork, make_node


class MockSlowAction(AbstractAction):
    """Mock action that blocks until released."""

    def __init__(self, action: Action) -> None:
        super().__init__(FakeNetwork(), SimulationConfig(), np.random.default_rng(0))
        self.action = action
        self.release = asyncio.Event()
        self.started = 0

    async def _perform(self) -> str:
        self.started += 1
        await self.release.wait()
        return "done"


def make_scheduler(actions: List[Action], events: List[SimulationEvent]):
    executors = {a: MockSlowAction(a) for a in (Action.ASK, Action.BID, Action.PAYMENT)}
    scheduler = ActionScheduler(
        actions, executors, 0.01, np.random.default_rng(5), events.append
    )
    return scheduler, executors


class TestDispatch:
    """Tests for the fire-and-forget dispatch of a single tick."""

    def test_no_actions_is_noop(self) -> None:
        events: List[SimulationEvent] = []
        scheduler, _ = make_scheduler([], events)

        async def scenario():
            return scheduler.dispatch_once()

        assert asyncio.run(scenario()) is None
        assert events == []

    def test_dispatch_does_not_wait_for_action(self) -> None:
        """Assert dispatch returns while the action is still running."""
        events: List[SimulationEvent] = []
        scheduler, executors = make_scheduler([Action.ASK], events)

        async def scenario() -> None:
            task = scheduler.dispatch_once()
            assert task is not None
            await asyncio.sleep(0.01)
            assert not task.done()
            assert executors[Action.ASK].started == 1
            assert events == []

            executors[Action.ASK].release.set()
            await scheduler.drain()

        asyncio.run(scenario())

        assert len(events) == 1
        assert events[0].kind == EventKind.ASK
        assert events[0].success

    def test_actions_overlap(self) -> None:
        """Several dispatched actions run concurrently."""
        events: List[SimulationEvent] = []
        scheduler, executors = make_scheduler([Action.BID], events)

        async def scenario() -> None:
            for _ in range(3):
                scheduler.dispatch_once()
            await asyncio.sleep(0.01)
            assert executors[Action.BID].started == 3
            assert len(scheduler.in_flight) == 3
            executors[Action.BID].release.set()
            await scheduler.drain()

        asyncio.run(scenario())

        assert len(events) == 3
        assert scheduler.in_flight == set()

    def test_uniform_choice_covers_all_actions(self) -> None:
        events: List[SimulationEvent] = []
        actions = [Action.ASK, Action.BID, Action.PAYMENT]
        scheduler, executors = make_scheduler(actions, events)
        for executor in executors.values():
            executor.release.set()

        async def scenario() -> None:
            for _ in range(300):
                scheduler.dispatch_once()
            await scheduler.drain()

        asyncio.run(scenario())

        counts = Counter(e.kind for e in events)
        assert set(counts) == {EventKind.ASK, EventKind.BID, EventKind.PAYMENT}
        assert all(60 <= c <= 140 for c in counts.values())

    def test_missing_executor_rejected(self) -> None:
        with pytest.raises(ValueError, match="SEND_FILE"):
            make_scheduler([Action.SEND_FILE], [])


class ResettingDaemon(FakeDaemon):
    async def submit_bid(self, address: str, size: int, price: int) -> None:
        raise ConnectionResetError("connection reset by peer")


class TestUnexpectedFailures:
    def test_failed_action_still_reports(self) -> None:
        """Assert an action hitting a plain OS error delivers a failed event."""
        network = FakeNetwork([make_node(0, NodeType.CLIENT, ResettingDaemon())])
        events: List[SimulationEvent] = []
        bid = BidAction(network, SimulationConfig(), np.random.default_rng(0))
        scheduler = ActionScheduler(
            [Action.BID], {Action.BID: bid}, 0.01, np.random.default_rng(0), events.append
        )

        async def scenario() -> None:
            task = scheduler.dispatch_once()
            await scheduler.drain()
            assert task.exception() is None

        asyncio.run(scenario())

        assert len(events) == 1
        assert events[0].kind == EventKind.BID
        assert not events[0].success
        assert "ConnectionResetError" in events[0].detail
