"""Source of sample files imported into nodes for deal proposals."""

import shutil
from pathlib import Path

import numpy as np


def pick_random_file(
    source_dir: str | Path, dest_dir: str | Path, rng: np.random.Generator
) -> Path:
    """
    Copy a uniformly chosen file from source_dir into dest_dir.

    Args:
        source_dir: Directory holding the sample files.
        dest_dir: Directory to copy the chosen file into (usually a node repo).
        rng: Generator used for the choice.

    Returns:
        Path of the copy inside dest_dir.

    Raises:
        FileNotFoundError: If source_dir holds no regular files.
    """
    candidates = sorted(p for p in Path(source_dir).iterdir() if p.is_file())
    if not candidates:
        raise FileNotFoundError(f"no test files in {source_dir}")

    chosen = candidates[int(rng.integers(len(candidates)))]
    target_dir = Path(dest_dir) / "imports"
    target_dir.mkdir(parents=True, exist_ok=True)
    return Path(shutil.copy(chosen, target_dir / chosen.name))
