"""
Checkpoint records.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CheckpointRecord:
    """
    Write-once record of a published checkpoint root.

    Fields:
        root: Root of the CheckpointBlock
        created_at: Clock reading at creation; the dispute window starts here
    """
    root: bytes
    created_at: int

    def window_end(self, period: int) -> int:
        """Last timestamp at which the checkpoint may still be disputed."""
        return self.created_at + period

    def is_finalized(self, now: int, period: int) -> bool:
        return now > self.window_end(period)
