"""
Journal event model.

Every successful settlement mutation is recorded as an immutable Event.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

BLOCK_SUBMITTED = "BlockSubmitted"
CHECKPOINT_CREATED = "CheckpointCreated"
EXIT_STARTED = "ExitStarted"
EXIT_CHALLENGED = "ExitChallenged"
EXIT_CANCELLED = "ExitCancelled"
EXIT_CHALLENGE_RESPONDED = "ExitChallengeResponded"
EXIT_FINALIZED = "ExitFinalized"
CHECKPOINT_CHALLENGED = "CheckpointChallenged"
CHECKPOINT_CHALLENGE_RESPONDED = "CheckpointChallengeResponded"


@dataclass(frozen=True)
class Event:
    """
    Immutable event record.

    Fields:
        type: Event type (e.g., "ExitStarted", "CheckpointChallenged")
        aggregate_id: Target key ("asset-7", "checkpoint-ab12...")
        ts: Clock reading when the mutation was applied
        payload: Event-specific data (JSON-compatible, bytes as hex)
        seq: Sequence number (assigned by EventStore)
    """
    type: str
    aggregate_id: str
    ts: int
    payload: Dict[str, Any] = field(default_factory=dict)
    seq: Optional[int] = None

    def require_seq(self) -> int:
        """
        Get sequence number or raise error if not assigned.

        Raises:
            ValueError: If seq is None
        """
        if self.seq is None:
            raise ValueError("Event.seq is required but None")
        return self.seq
