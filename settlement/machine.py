"""
Shared plumbing of the exit and checkpoint state machines.

Both machines validate every precondition before their first mutation, then
append the journal event, then mutate in-memory state. A failure at any step
before the mutation leaves everything unchanged.
"""

import logging
from typing import Any, Dict, Optional

from .core.clock import Clock
from .core.config import SettlementConfig
from .core.errors import PreconditionFailedError
from .core.events import Event
from .core.locks import KeyedLocks
from .journal.store import EventStore
from .ledger.interfaces import BlockLedger, ProofVerifier, Transaction, TransactionDecoder
from .tx.codec import transaction_leaf


def require(condition: bool, message: str, log: Optional[logging.LoggerAdapter] = None) -> None:
    """
    Raises:
        PreconditionFailedError: If condition is false
    """
    if not condition:
        if log is not None:
            log.debug("Rejected: %s", message)
        raise PreconditionFailedError(message)


class StateMachine:
    """
    Collaborators common to every settlement state machine.

    Fields:
        ledger: Roots of the primary ledger
        verifier: Merkle path verification
        decoder: Raw transaction decoding
        clock: Injected time source
        config: Challenge periods
        journal: Event store receiving one event per applied mutation
        locks: Per-key lock table shared across machines
    """

    def __init__(
        self,
        ledger: BlockLedger,
        verifier: ProofVerifier,
        decoder: TransactionDecoder,
        clock: Clock,
        config: SettlementConfig,
        journal: EventStore,
        locks: KeyedLocks,
    ) -> None:
        self._ledger = ledger
        self._verifier = verifier
        self._decoder = decoder
        self._clock = clock
        self._config = config
        self._journal = journal
        self._locks = locks

    def _decode(self, raw: bytes) -> Transaction:
        return self._decoder.decode(raw)

    def _tx_included(self, tx: Transaction, proof: Optional[bytes], block_number: int) -> bool:
        """True if tx is the leaf of tx.uid in the ledger block block_number."""
        root = self._ledger.root_at(block_number)
        return self._verifier.verify(transaction_leaf(tx.raw), tx.uid, root, proof)

    def _emit(self, event_type: str, aggregate_id: str, ts: int, payload: Dict[str, Any]) -> None:
        self._journal.append(Event(type=event_type, aggregate_id=aggregate_id, ts=ts, payload=payload))
