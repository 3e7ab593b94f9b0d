"""
Checkpoint dispute controller.

Any party may contest the nonce a checkpoint records for an asset while the
checkpoint's dispute window is open, by showing a ledger transaction with a
lower nonce. The dispute stays open until someone continues that
transaction's custody chain, or shows an older finalized checkpoint that
already recorded the same, higher nonce.

Disputes are keyed by (asset id, checkpoint root).
"""

from typing import Dict, Optional, Tuple

from ..block.checkpoint import nonce_leaf
from ..core.errors import AbsentError, DuplicateEntryError
from ..core.events import CHECKPOINT_CHALLENGE_RESPONDED, CHECKPOINT_CHALLENGED, CHECKPOINT_CREATED
from ..core.hashing import HASH_SIZE, short_hex
from ..core.locks import asset_key, checkpoint_key
from ..disputes.registry import DisputeRegistry
from ..logging_config import get_logger
from ..machine import StateMachine, require
from .model import CheckpointRecord

DisputeScope = Tuple[int, bytes]


def _aggregate(root: bytes) -> str:
    return f"checkpoint-{short_hex(root)}"


class CheckpointDisputeController(StateMachine):
    """
    Parallel state machine over (asset, checkpoint root) pairs.

    Usage:
        controller.create_checkpoint(block.root())
        controller.challenge_checkpoint(7, root, proof, 9, later_tx, later_proof, 12)
        controller.respond_checkpoint_challenge(7, root, later_tx, respond_tx, proof, 13)
    """

    def __init__(self, *args, challenges: Optional[DisputeRegistry] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._checkpoints: Dict[bytes, CheckpointRecord] = {}
        self._challenges: DisputeRegistry = challenges if challenges is not None else DisputeRegistry()

    @property
    def challenges(self) -> DisputeRegistry:
        return self._challenges

    # -- checkpoint records -------------------------------------------------

    def create_checkpoint(self, root: bytes) -> CheckpointRecord:
        """
        Publish a checkpoint root, timestamped now.

        Raises:
            DuplicateEntryError: If the root was already published
            PreconditionFailedError: If root is not 32 bytes
        """
        root = bytes(root)
        log = get_logger(__name__, trace_id=_aggregate(root))
        require(len(root) == HASH_SIZE, f"checkpoint root must be {HASH_SIZE} bytes", log)
        with self._locks.hold(checkpoint_key(root)):
            if root in self._checkpoints:
                raise DuplicateEntryError(f"checkpoint {root.hex()} already exists")
            now = self._clock.now()
            record = CheckpointRecord(root=root, created_at=now)
            self._emit(CHECKPOINT_CREATED, _aggregate(root), now, {"root": root.hex()})
            self._checkpoints[root] = record
        log.info("Checkpoint created", extra={"created_at": now})
        return record

    def get_checkpoint(self, root: bytes) -> Optional[CheckpointRecord]:
        return self._checkpoints.get(bytes(root))

    def _require_checkpoint(self, root: bytes) -> CheckpointRecord:
        record = self._checkpoints.get(bytes(root))
        if record is None:
            raise AbsentError(f"checkpoint {bytes(root).hex()} does not exist")
        return record

    def is_finalized(self, root: bytes) -> bool:
        """
        True once the checkpoint's dispute window has elapsed.

        Raises:
            AbsentError: If the checkpoint does not exist
        """
        record = self._require_checkpoint(root)
        return record.is_finalized(self._clock.now(), self._config.checkpoint_challenge_period)

    def dispute_count(self, asset_id: int, root: bytes) -> int:
        return self._challenges.count((asset_id, bytes(root)))

    def dispute_exists(self, asset_id: int, root: bytes, challenge_tx: bytes) -> bool:
        return self._challenges.exists((asset_id, bytes(root)), challenge_tx)

    # -- disputes -----------------------------------------------------------

    def challenge_checkpoint(
        self,
        asset_id: int,
        checkpoint_root: bytes,
        checkpoint_proof: bytes,
        claimed_wrong_nonce: int,
        later_tx: bytes,
        later_proof: bytes,
        later_block: int,
    ) -> None:
        """
        Dispute the nonce recorded for asset_id in a checkpoint.

        later_tx is a ledger transaction of the asset whose nonce is below
        the nonce the checkpoint claims.

        Raises:
            AbsentError: Unknown checkpoint
            DuplicateEntryError: The same dispute is already open
            PreconditionFailedError: Window closed, proof failure, or the
                claimed nonce does not exceed later_tx's nonce
        """
        root = bytes(checkpoint_root)
        later = self._decode(later_tx)
        log = get_logger(__name__, trace_id=f"asset-{asset_id}")
        scope: DisputeScope = (asset_id, root)

        with self._locks.hold(asset_key(asset_id)):
            record = self._require_checkpoint(root)
            now = self._clock.now()
            require(
                now <= record.window_end(self._config.checkpoint_challenge_period),
                "checkpoint dispute window has closed",
                log,
            )
            require(later.uid == asset_id, "transaction does not reference the asset", log)
            if self._challenges.exists(scope, later.raw):
                raise DuplicateEntryError("dispute already open for this checkpoint and transaction")
            require(
                self._tx_included(later, later_proof, later_block),
                "transaction is not included in the given block",
                log,
            )
            require(
                self._verifier.verify(nonce_leaf(claimed_wrong_nonce), asset_id, root, checkpoint_proof),
                "claimed nonce is not recorded in the checkpoint",
                log,
            )
            require(
                claimed_wrong_nonce > later.nonce,
                "checkpoint nonce does not exceed the transaction nonce",
                log,
            )

            self._emit(
                CHECKPOINT_CHALLENGED,
                f"asset-{asset_id}",
                now,
                {
                    "checkpoint_root": root.hex(),
                    "claimed_nonce": claimed_wrong_nonce,
                    "challenge_tx": later.raw.hex(),
                    "block_number": later_block,
                },
            )
            self._challenges.add(scope, later.raw, later_block)
        log.info("Checkpoint challenged", extra={"checkpoint": short_hex(root), "nonce": later.nonce})

    def respond_checkpoint_challenge(
        self,
        asset_id: int,
        checkpoint_root: bytes,
        challenge_tx: bytes,
        respond_tx: bytes,
        proof: bytes,
        block_number: int,
    ) -> None:
        """
        Close a dispute with the transaction that spends the challenge transaction.

        Raises:
            AbsentError: No such dispute
            PreconditionFailedError: respond_tx does not continue the custody chain
        """
        root = bytes(checkpoint_root)
        log = get_logger(__name__, trace_id=f"asset-{asset_id}")
        scope: DisputeScope = (asset_id, root)

        with self._locks.hold(asset_key(asset_id)):
            if not self._challenges.exists(scope, challenge_tx):
                raise AbsentError("checkpoint dispute does not exist")
            challenge = self._decode(challenge_tx)
            respond = self._decode(respond_tx)
            require(respond.uid == asset_id, "response does not reference the asset", log)
            require(respond.amount == challenge.amount, "response amount differs from challenge", log)
            require(
                challenge.new_owner == respond.signer,
                "response is not signed by the challenge's new owner",
                log,
            )
            require(respond.nonce == challenge.nonce + 1, "response nonce must follow the challenge", log)
            require(
                self._tx_included(respond, proof, block_number),
                "response is not included in the given block",
                log,
            )

            self._resolve(scope, challenge.raw, {"method": "transaction", "respond_tx": respond.raw.hex()})
        log.info("Checkpoint challenge answered", extra={"checkpoint": short_hex(root)})

    def respond_with_historical_checkpoint(
        self,
        asset_id: int,
        checkpoint_root: bytes,
        checkpoint_proof: bytes,
        older_root: bytes,
        older_proof: bytes,
        challenge_tx: bytes,
        higher_nonce: int,
    ) -> None:
        """
        Close a dispute by showing that an older, finalized checkpoint already
        recorded higher_nonce for the asset, and that the disputed checkpoint
        records the same nonce.

        Raises:
            AbsentError: No such dispute, or unknown older checkpoint
            PreconditionFailedError: Older checkpoint not finalized or not older,
                nonce not higher, or a proof failure
        """
        root = bytes(checkpoint_root)
        older_root = bytes(older_root)
        log = get_logger(__name__, trace_id=f"asset-{asset_id}")
        scope: DisputeScope = (asset_id, root)

        with self._locks.hold(asset_key(asset_id)):
            if not self._challenges.exists(scope, challenge_tx):
                raise AbsentError("checkpoint dispute does not exist")
            disputed = self._require_checkpoint(root)
            older = self._require_checkpoint(older_root)
            challenge = self._decode(challenge_tx)
            require(
                older.is_finalized(self._clock.now(), self._config.checkpoint_challenge_period),
                "historical checkpoint is not finalized",
                log,
            )
            require(
                older.created_at < disputed.created_at,
                "historical checkpoint must predate the disputed checkpoint",
                log,
            )
            require(higher_nonce > challenge.nonce, "nonce does not exceed the challenge nonce", log)
            leaf = nonce_leaf(higher_nonce)
            require(
                self._verifier.verify(leaf, asset_id, older_root, older_proof),
                "nonce is not recorded in the historical checkpoint",
                log,
            )
            require(
                self._verifier.verify(leaf, asset_id, root, checkpoint_proof),
                "nonce is not recorded in the disputed checkpoint",
                log,
            )

            self._resolve(
                scope,
                challenge.raw,
                {"method": "historical_checkpoint", "older_root": older_root.hex(), "nonce": higher_nonce},
            )
        log.info("Checkpoint challenge answered", extra={"checkpoint": short_hex(root)})

    def _resolve(self, scope: DisputeScope, challenge_tx: bytes, detail: dict) -> None:
        asset_id, root = scope
        payload = {"checkpoint_root": root.hex(), "challenge_tx": challenge_tx.hex()}
        payload.update(detail)
        self._emit(CHECKPOINT_CHALLENGE_RESPONDED, f"asset-{asset_id}", self._clock.now(), payload)
        self._challenges.remove(scope, challenge_tx)
