import asyncio
import logging
import tempfile
from pathlib import Path

import numpy as np
import pandas as pd

from ledger_netsim.config import ActionArgs, SimulationConfig
from ledger_netsim.models import EventKind
from ledger_netsim.network.local_network import LocalNetwork
from ledger_netsim.simulation.engine import SimulationEngine
from ledger_netsim.simulation.recorder import EventRecorder, SimulationSummary


DEBUG: bool = False
RUN_SECONDS: float = 20.0
TESTFILE_COUNT: int = 5
TESTFILE_BYTES: int = 4096
OUTPUT_DIR: Path = Path("output")
EVENTS_CSV_PATH: Path = OUTPUT_DIR / "events.csv"


def setup_logging(debug: bool) -> None:
    """Send engine logs to stderr; per-tick traces only in debug mode."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def write_testfiles(directory: Path, seed: int) -> None:
    """Fill a directory with random files for deal proposals to import."""
    rng = np.random.default_rng(seed)
    directory.mkdir(parents=True, exist_ok=True)
    for i in range(TESTFILE_COUNT):
        (directory / f"testfile-{i}.bin").write_bytes(rng.bytes(TESTFILE_BYTES))


def print_simulation_summary(summary: SimulationSummary) -> None:
    """Print a formatted table of per-kind event counts."""
    print("\n" + "=" * 50)
    print("Network Simulation Summary")
    print("=" * 50)
    print(f"{'Event':<15} {'Succeeded':>10} {'Failed':>10} {'Total':>10}")
    print("-" * 50)
    for kind in EventKind:
        ok = summary.success_counts.get(kind, 0)
        failed = summary.failure_counts.get(kind, 0)
        print(f"{kind.value:<15} {ok:>10,} {failed:>10,} {ok + failed:>10,}")
    print("-" * 50)
    print(f"{'Mined Epochs:':<30} {summary.mined_epochs:>15,}")
    print(f"{'Success Rate:':<30} {summary.success_rate * 100:>14.1f}%")
    print("=" * 50 + "\n")


def save_events_csv(df: pd.DataFrame, path: Path) -> None:
    """Save the event log to CSV, creating directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    print(f"Event log saved to: {path}")


async def run_simulation(config: SimulationConfig, workdir: Path, duration: float) -> EventRecorder:
    """Run the engine against a local network for `duration` seconds."""
    network = LocalNetwork(workdir / "nodes", seed=config.SEED)
    recorder = EventRecorder()
    engine = SimulationEngine(network, config, report=recorder.record)

    stop = asyncio.Event()
    recorder.mark_start()
    engine.start(stop)
    try:
        try:
            await asyncio.sleep(duration)
        finally:
            stop.set()
            await engine.wait()
    finally:
        await network.shutdown_all()
    return recorder


def main() -> None:
    """Provision a local network, drive it with random activity and summarize."""
    setup_logging(DEBUG)

    with tempfile.TemporaryDirectory(prefix="ledger-netsim-") as tmp:
        workdir = Path(tmp)
        testfiles_dir = workdir / "testfiles"
        write_testfiles(testfiles_dir, seed=0)

        config = SimulationConfig(
            START_NODES=6,
            MAX_NODES=30,
            FORK_BRANCHING=2,
            FORK_PROBABILITY=0.7,
            TESTFILES_DIR=str(testfiles_dir),
            ACTIONS=ActionArgs(DEAL=True),
        )
        recorder = asyncio.run(run_simulation(config, workdir, RUN_SECONDS))

    print_simulation_summary(recorder.summary())
    save_events_csv(recorder.to_dataframe(), EVENTS_CSV_PATH)


if __name__ == "__main__":
    main()
