"""
Per-asset exit lifecycle.
"""

from .machine import ExitStateMachine
from .state import ChallengeOutcome, ExitRecord, ExitState

__all__ = ["ExitStateMachine", "ChallengeOutcome", "ExitRecord", "ExitState"]
