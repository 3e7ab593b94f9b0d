"""
Exit records.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum

from ..ledger.interfaces import Transaction


class ExitState(IntEnum):
    """
    Exit lifecycle.

    NONE -> PENDING <-> CHALLENGED, PENDING -> FINALIZED (terminal).
    PENDING and CHALLENGED exits may also be deleted, which reads as NONE.
    """
    NONE = 0
    CHALLENGED = 1
    PENDING = 2
    FINALIZED = 3


class ChallengeOutcome(Enum):
    """What challenge_exit did to the exit."""
    CANCELLED_SPENT = "cancelled_spent"
    CANCELLED_DOUBLE_SPEND = "cancelled_double_spend"
    CHALLENGED = "challenged"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ExitRecord:
    """
    Withdrawal in progress (or finalized) for one asset.

    Fields:
        state: Current ExitState
        deadline: Timestamp after which the exit may be finished
        prior_tx: Transaction that gave custody to the signer of last_tx
        prior_block: Block holding prior_tx
        last_tx: Transaction naming the exiting owner
        last_block: Block holding last_tx
    """
    state: ExitState
    deadline: int
    prior_tx: Transaction
    prior_block: int
    last_tx: Transaction
    last_block: int

    @property
    def uid(self) -> int:
        return self.last_tx.uid

    @property
    def owner(self) -> str:
        return self.last_tx.new_owner
