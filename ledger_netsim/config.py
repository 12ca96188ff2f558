from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ledger_netsim.models import Action


# Economic tuning constants for randomized actions (not protocol rules)
PAYMENT_AMOUNT: int = 5000
PAYMENT_TIMEOUT_BLOCKS: int = 3  # transfer abandoned after this many block times
ASK_SIZE_RANGE: Tuple[int, int] = (31, 46)  # inclusive bounds
ASK_PRICE_RANGE: Tuple[int, int] = (13, 25)
BID_SIZE_RANGE: Tuple[int, int] = (31, 46)
BID_PRICE_RANGE: Tuple[int, int] = (1, 17)

# Churn heuristic: request clients until they outnumber miners by this factor
CLIENT_TO_MINER_RATIO: float = 1.5

# Mining rolls outside these bounds are decided without drawing
MINE_NEVER_BELOW: float = 0.001
MINE_ALWAYS_ABOVE: float = 0.999


@dataclass(frozen=True)
class ActionArgs:
    """Switches for the randomized actions and the mining scheduler."""

    ASK: bool = True
    BID: bool = True
    DEAL: bool = False
    PAYMENT: bool = True
    MINE: bool = True


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for a network simulation run."""

    # Random seed for reproducibility
    SEED: int = 42

    # Node population
    START_NODES: int = 4
    MAX_NODES: int = 30

    # Mining: miners eligible per epoch and per-miner participation probability
    FORK_BRANCHING: int = 1
    FORK_PROBABILITY: float = 1.0

    # Loop intervals in seconds
    JOIN_TIME: float = 3.0
    BLOCK_TIME: float = 2.0
    ACTION_TIME: float = 1.0

    # Source directory for files imported by deal proposals
    TESTFILES_DIR: Optional[str] = None

    ACTIONS: ActionArgs = field(default_factory=ActionArgs)

    def __post_init__(self) -> None:
        if self.START_NODES < 0 or self.MAX_NODES < 0:
            raise ValueError(
                f"node counts must be non-negative, got START_NODES={self.START_NODES} "
                f"MAX_NODES={self.MAX_NODES}"
            )
        if self.START_NODES > self.MAX_NODES:
            raise ValueError(
                f"START_NODES ({self.START_NODES}) must not exceed MAX_NODES ({self.MAX_NODES})"
            )
        if not 0.0 <= self.FORK_PROBABILITY <= 1.0:
            raise ValueError(
                f"FORK_PROBABILITY must be within [0, 1], got {self.FORK_PROBABILITY}"
            )
        for name in ("JOIN_TIME", "BLOCK_TIME", "ACTION_TIME"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.ACTIONS.MINE and self.FORK_BRANCHING < 1:
            raise ValueError(
                f"mining is enabled but FORK_BRANCHING is {self.FORK_BRANCHING}; "
                "at least one miner must be eligible per epoch"
            )
        if self.ACTIONS.DEAL and not self.TESTFILES_DIR:
            raise ValueError("deal actions are enabled but TESTFILES_DIR is not set")

    @property
    def payment_timeout(self) -> float:
        """Seconds after which a hung transfer is abandoned."""
        return self.BLOCK_TIME * PAYMENT_TIMEOUT_BLOCKS

    def enabled_actions(self) -> List[Action]:
        """Actions the scheduler may pick from, in a stable order."""
        switches = [
            (self.ACTIONS.ASK, Action.ASK),
            (self.ACTIONS.BID, Action.BID),
            (self.ACTIONS.DEAL, Action.DEAL),
            (self.ACTIONS.PAYMENT, Action.PAYMENT),
        ]
        return [action for enabled, action in switches if enabled]


def format_config(config: SimulationConfig) -> str:
    """Render the run parameters as an indented, human-readable block."""
    rows = [
        ("SEED", config.SEED),
        ("START_NODES", config.START_NODES),
        ("MAX_NODES", config.MAX_NODES),
        ("FORK_BRANCHING", config.FORK_BRANCHING),
        ("FORK_PROBABILITY", config.FORK_PROBABILITY),
        ("JOIN_TIME", f"{config.JOIN_TIME}s"),
        ("BLOCK_TIME", f"{config.BLOCK_TIME}s"),
        ("ACTION_TIME", f"{config.ACTION_TIME}s"),
        ("TESTFILES_DIR", config.TESTFILES_DIR or "-"),
    ]
    lines = [f"{name}: {value}" for name, value in rows]

    lines.append("ACTIONS:")
    for name in ("ASK", "BID", "DEAL", "PAYMENT", "MINE"):
        lines.append(f"\t{name}: {getattr(config.ACTIONS, name)}")

    return "\n".join(lines)
