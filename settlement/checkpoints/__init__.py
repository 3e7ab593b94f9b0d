"""
Checkpoint publication and dispute resolution.
"""

from .controller import CheckpointDisputeController
from .model import CheckpointRecord

__all__ = ["CheckpointDisputeController", "CheckpointRecord"]
