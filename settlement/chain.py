"""
Root chain facade.

Wires the ledger collaborators, the journal and one instance of each state
machine together, and exposes the operator operations that publish ledger
blocks and checkpoints.

Usage:
    chain = RootChain(clock=DeterministicClock(1000))
    chain.custody.register(7, 100)
    chain.submit_transaction_block(10, block)
    chain.exits.start_exit(prior, prior_proof, 10, last, last_proof, 11, caller)
"""

import threading
from typing import Optional

from .block.checkpoint import CheckpointBlock
from .block.transactions import TransactionBlock
from .checkpoints.controller import CheckpointDisputeController
from .checkpoints.model import CheckpointRecord
from .core.clock import Clock, SystemClock
from .core.config import SettlementConfig
from .core.errors import DuplicateEntryError
from .core.events import BLOCK_SUBMITTED, Event
from .core.hashing import HASH_SIZE
from .core.locks import KeyedLocks
from .exits.machine import ExitStateMachine
from .journal.file_store import FileEventStore
from .journal.store import EventStore, MemoryEventStore
from .ledger.interfaces import ProofVerifier, TransactionDecoder
from .ledger.memory import CustodyRecords, InMemoryBlockLedger
from .logging_config import get_logger
from .machine import require
from .merkle.verify import SparseMerkleVerifier
from .tx.codec import TransactionCodec

logger = get_logger(__name__, trace_id="operator")


class RootChain:
    """
    One settlement instance.

    Fields:
        config: Fixed challenge periods and tree depth
        clock: Injected time source
        ledger: Append-only block roots
        custody: Registered value per asset
        journal: Hash-chained record of applied mutations
        checkpoints: CheckpointDisputeController
        exits: ExitStateMachine
    """

    def __init__(
        self,
        config: Optional[SettlementConfig] = None,
        clock: Optional[Clock] = None,
        ledger: Optional[InMemoryBlockLedger] = None,
        verifier: Optional[ProofVerifier] = None,
        decoder: Optional[TransactionDecoder] = None,
        custody: Optional[CustodyRecords] = None,
        journal: Optional[EventStore] = None,
    ) -> None:
        self.config = config or SettlementConfig.from_env()
        self.clock = clock or SystemClock()
        self.ledger = ledger or InMemoryBlockLedger()
        self.verifier = verifier or SparseMerkleVerifier(self.config.tree_depth)
        self.decoder = decoder or TransactionCodec()
        self.custody = custody or CustodyRecords()
        if journal is None:
            journal = FileEventStore(self.config.journal_path) if self.config.journal_path else MemoryEventStore()
        self.journal = journal
        self.locks = KeyedLocks()
        self._operator_lock = threading.Lock()

        common = dict(
            ledger=self.ledger,
            verifier=self.verifier,
            decoder=self.decoder,
            clock=self.clock,
            config=self.config,
            journal=self.journal,
            locks=self.locks,
        )
        self.checkpoints = CheckpointDisputeController(**common)
        self.exits = ExitStateMachine(custody=self.custody, checkpoints=self.checkpoints, **common)

    def submit_block(self, block_number: int, root: bytes) -> None:
        """
        Publish the root of ledger block block_number.

        Raises:
            DuplicateEntryError: Block number already published
            PreconditionFailedError: Block number not above the last one, or bad root
        """
        root = bytes(root)
        with self._operator_lock:
            if self.ledger.root_at(block_number) is not None:
                raise DuplicateEntryError(f"block {block_number} already submitted")
            require(
                block_number > self.ledger.last_block,
                f"block {block_number} must be greater than last block {self.ledger.last_block}",
                logger,
            )
            require(len(root) == HASH_SIZE, f"block root must be {HASH_SIZE} bytes", logger)
            now = self.clock.now()
            self.journal.append(
                Event(
                    type=BLOCK_SUBMITTED,
                    aggregate_id=f"block-{block_number}",
                    ts=now,
                    payload={"block_number": block_number, "root": root.hex()},
                )
            )
            self.ledger.submit(block_number, root)
        logger.info("Block submitted", extra={"block_number": block_number})

    def submit_transaction_block(self, block_number: int, block: TransactionBlock) -> bytes:
        """
        Publish a built transaction block.

        Returns:
            The block root
        """
        require(block.is_built(), "transaction block must be built before submission", logger)
        root = block.root()
        self.submit_block(block_number, root)
        return root

    def new_checkpoint(self, root: bytes) -> CheckpointRecord:
        return self.checkpoints.create_checkpoint(root)

    def new_checkpoint_from_block(self, block: CheckpointBlock) -> CheckpointRecord:
        require(block.is_built(), "checkpoint block must be built before publication", logger)
        return self.checkpoints.create_checkpoint(block.root())
