"""
Settlement configuration.

Environment Variables:
    PLASMA_EXIT_CHALLENGE_PERIOD: Exit challenge window in seconds - default: 14 days
    PLASMA_CHECKPOINT_CHALLENGE_PERIOD: Checkpoint dispute window in seconds - default: 14 days
    PLASMA_TREE_DEPTH: Sparse Merkle tree depth including the leaf level - default: 257
    PLASMA_JOURNAL_PATH: JSONL journal file (unset = in-memory journal)
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_EXIT_CHALLENGE_PERIOD = 14 * 24 * 60 * 60
DEFAULT_CHECKPOINT_CHALLENGE_PERIOD = 14 * 24 * 60 * 60
DEFAULT_TREE_DEPTH = 257


def _env_int(key: str, default: int) -> int:
    val = os.getenv(key)
    if not val:
        return default
    try:
        parsed = int(val)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class SettlementConfig:
    """
    Fixed parameters of one settlement instance.

    Challenge periods are shared by every asset and checkpoint handled by the
    instance and never change after construction.
    """
    exit_challenge_period: int = DEFAULT_EXIT_CHALLENGE_PERIOD
    checkpoint_challenge_period: int = DEFAULT_CHECKPOINT_CHALLENGE_PERIOD
    tree_depth: int = DEFAULT_TREE_DEPTH
    journal_path: Optional[str] = None

    @staticmethod
    def from_env() -> "SettlementConfig":
        depth = _env_int("PLASMA_TREE_DEPTH", DEFAULT_TREE_DEPTH)
        if depth < 2:
            depth = DEFAULT_TREE_DEPTH
        return SettlementConfig(
            exit_challenge_period=_env_int(
                "PLASMA_EXIT_CHALLENGE_PERIOD", DEFAULT_EXIT_CHALLENGE_PERIOD
            ),
            checkpoint_challenge_period=_env_int(
                "PLASMA_CHECKPOINT_CHALLENGE_PERIOD", DEFAULT_CHECKPOINT_CHALLENGE_PERIOD
            ),
            tree_depth=depth,
            journal_path=os.getenv("PLASMA_JOURNAL_PATH") or None,
        )
