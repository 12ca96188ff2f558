"""Sleep-then-tick loop shared by the periodic processes."""

import asyncio
from typing import Awaitable, Callable

from ledger_netsim.models import SimulationEvent

Reporter = Callable[[SimulationEvent], None]


async def run_periodic(
    interval: float, stop: asyncio.Event, tick: Callable[[], Awaitable[None]]
) -> None:
    """
    Call `tick` every `interval` seconds until `stop` is set.

    The stop event is checked after each sleep, before the tick body runs;
    a tick that has started always runs to completion.
    """
    while True:
        await asyncio.sleep(interval)
        if stop.is_set():
            return
        await tick()
