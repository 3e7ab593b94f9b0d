"""
Dispute tracking shared by exit challenges and checkpoint challenges.
"""

from .registry import ABSENT_SLOT, Challenge, DisputeRegistry

__all__ = ["ABSENT_SLOT", "Challenge", "DisputeRegistry"]
