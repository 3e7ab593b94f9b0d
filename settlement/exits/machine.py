"""
Exit state machine.

An owner exits an asset by presenting the last two transactions of its
custody chain. During the challenge period anyone may contest the exit:

1. a later spend by the exiting owner cancels the exit;
2. a competing spend of the prior transaction, included after the prior
   transaction and before the last one, cancels the exit;
3. an older transaction puts the exit under challenge until someone
   continues that transaction's custody chain or shows a finalized
   checkpoint with a higher nonce.

The exit finishes once the deadline has passed with no open challenge.
"""

from dataclasses import replace
from typing import Dict, Optional

from ..block.checkpoint import nonce_leaf
from ..checkpoints.controller import CheckpointDisputeController
from ..core.errors import AbsentError, DuplicateEntryError
from ..core.events import (
    EXIT_CANCELLED,
    EXIT_CHALLENGE_RESPONDED,
    EXIT_CHALLENGED,
    EXIT_FINALIZED,
    EXIT_STARTED,
)
from ..core.hashing import short_hex
from ..core.locks import asset_key
from ..disputes.registry import DisputeRegistry
from ..ledger.interfaces import CustodyLedger
from ..logging_config import get_logger
from ..machine import StateMachine, require
from .state import ChallengeOutcome, ExitRecord, ExitState


def _aggregate(asset_id: int) -> str:
    return f"asset-{asset_id}"


class ExitStateMachine(StateMachine):
    """
    Per-asset withdrawal lifecycle.

    Exit challenges are kept in a DisputeRegistry scoped by asset id.
    """

    def __init__(
        self,
        *args,
        custody: CustodyLedger,
        checkpoints: CheckpointDisputeController,
        challenges: Optional[DisputeRegistry] = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._custody = custody
        self._checkpoints = checkpoints
        self._challenges: DisputeRegistry = challenges if challenges is not None else DisputeRegistry()
        self._exits: Dict[int, ExitRecord] = {}

    @property
    def challenges(self) -> DisputeRegistry:
        return self._challenges

    def get_exit(self, asset_id: int) -> Optional[ExitRecord]:
        return self._exits.get(asset_id)

    def exit_state(self, asset_id: int) -> ExitState:
        record = self._exits.get(asset_id)
        return record.state if record is not None else ExitState.NONE

    def challenge_exists(self, asset_id: int, challenge_tx: bytes) -> bool:
        return self._challenges.exists(asset_id, challenge_tx)

    def challenge_count(self, asset_id: int) -> int:
        return self._challenges.count(asset_id)

    def start_exit(
        self,
        prior_tx: bytes,
        prior_proof: bytes,
        prior_block: int,
        last_tx: bytes,
        last_proof: bytes,
        last_block: int,
        caller: str,
    ) -> ExitRecord:
        """
        Begin withdrawing the asset named by last_tx.

        Returns:
            The new PENDING ExitRecord

        Raises:
            PreconditionFailedError: Broken custody chain, wrong caller,
                uncustodied asset, proof failure, exit already present or
                challenges still open
        """
        prior = self._decode(prior_tx)
        last = self._decode(last_tx)
        uid = last.uid
        log = get_logger(__name__, trace_id=_aggregate(uid))

        with self._locks.hold(asset_key(uid)):
            require(prior.uid == uid, "transactions reference different assets", log)
            require(prior.amount == last.amount, "transactions move different amounts", log)
            require(prior.new_owner == last.signer, "last transaction is not signed by the prior owner", log)
            require(last.nonce == prior.nonce + 1, "last transaction nonce must follow the prior nonce", log)
            require(caller == last.new_owner, "caller is not the owner named by the last transaction", log)
            require(self._custody.value_of(uid) != 0, "asset is not custodied", log)
            require(
                last.amount == self._custody.value_of(uid),
                "transactions do not move the custodied value",
                log,
            )
            require(
                self._tx_included(prior, prior_proof, prior_block),
                "prior transaction is not included in its block",
                log,
            )
            require(
                self._tx_included(last, last_proof, last_block),
                "last transaction is not included in its block",
                log,
            )
            require(self.exit_state(uid) == ExitState.NONE, "asset already has an exit", log)
            require(self._challenges.count(uid) == 0, "asset has open exit challenges", log)

            now = self._clock.now()
            record = ExitRecord(
                state=ExitState.PENDING,
                deadline=now + self._config.exit_challenge_period,
                prior_tx=prior,
                prior_block=prior_block,
                last_tx=last,
                last_block=last_block,
            )
            self._emit(
                EXIT_STARTED,
                _aggregate(uid),
                now,
                {
                    "owner": last.new_owner,
                    "deadline": record.deadline,
                    "prior_block": prior_block,
                    "last_block": last_block,
                    "prior_tx": prior.raw.hex(),
                    "last_tx": last.raw.hex(),
                },
            )
            self._exits[uid] = record
        log.info("Exit started", extra={"owner": last.new_owner, "deadline": record.deadline})
        return record

    def challenge_exit(self, challenge_tx: bytes, proof: bytes, challenge_block: int) -> ChallengeOutcome:
        """
        Contest a pending exit with a transaction of the same asset.

        Returns:
            ChallengeOutcome describing the applied rule

        Raises:
            AbsentError: No exit for the asset
            DuplicateEntryError: The challenge is already registered
            PreconditionFailedError: Exit not pending, value mismatch, proof
                failure, or the transaction does not contest the exit
        """
        challenge = self._decode(challenge_tx)
        uid = challenge.uid
        log = get_logger(__name__, trace_id=_aggregate(uid))

        with self._locks.hold(asset_key(uid)):
            record = self._exits.get(uid)
            if record is None:
                raise AbsentError(f"no exit for asset {uid}")
            require(record.state == ExitState.PENDING, "exit is not pending", log)
            require(
                challenge.amount == self._custody.value_of(uid),
                "challenge does not move the custodied value",
                log,
            )
            require(
                self._tx_included(challenge, proof, challenge_block),
                "challenge is not included in its block",
                log,
            )
            now = self._clock.now()

            if challenge.signer == record.owner and challenge.nonce > record.last_tx.nonce:
                self._cancel(record, challenge.raw, challenge_block, "spent_by_exiting_owner", now)
                log.info("Exit cancelled: exiting owner already spent the asset")
                return ChallengeOutcome.CANCELLED_SPENT

            if (
                record.prior_block < challenge_block < record.last_block
                and challenge.signer == record.prior_tx.new_owner
                and challenge.nonce > record.prior_tx.nonce
            ):
                self._cancel(record, challenge.raw, challenge_block, "prior_double_spent", now)
                log.info("Exit cancelled: prior transaction was spent before the exit")
                return ChallengeOutcome.CANCELLED_DOUBLE_SPEND

            if challenge_block < record.prior_block:
                if self._challenges.exists(uid, challenge.raw):
                    raise DuplicateEntryError("challenge already registered")
                self._emit(
                    EXIT_CHALLENGED,
                    _aggregate(uid),
                    now,
                    {"challenge_tx": challenge.raw.hex(), "block_number": challenge_block},
                )
                self._challenges.add(uid, challenge.raw, challenge_block)
                self._exits[uid] = replace(record, state=ExitState.CHALLENGED)
                log.info("Exit challenged", extra={"block_number": challenge_block})
                return ChallengeOutcome.CHALLENGED

            # Only an exit already under challenge tolerates a non-contesting transaction.
            require(record.state == ExitState.CHALLENGED, "transaction does not contest the exit", log)
            return ChallengeOutcome.UNCHANGED

    def _cancel(self, record: ExitRecord, challenge_tx: bytes, block_number: int, reason: str, now: int) -> None:
        uid = record.uid
        self._emit(
            EXIT_CANCELLED,
            _aggregate(uid),
            now,
            {"reason": reason, "challenge_tx": challenge_tx.hex(), "block_number": block_number},
        )
        del self._exits[uid]

    def respond_challenge_exit(
        self,
        challenge_tx: bytes,
        respond_tx: bytes,
        proof: bytes,
        block_number: int,
    ) -> ExitState:
        """
        Answer a challenge with the transaction that spends it.

        Returns:
            Exit state after the response (PENDING once no challenge remains)

        Raises:
            AbsentError: The challenge is not registered
            PreconditionFailedError: Exit not challenged, broken continuity,
                block after the prior transaction's block, or proof failure
        """
        challenge = self._decode(challenge_tx)
        respond = self._decode(respond_tx)
        uid = challenge.uid
        log = get_logger(__name__, trace_id=_aggregate(uid))

        with self._locks.hold(asset_key(uid)):
            if not self._challenges.exists(uid, challenge.raw):
                raise AbsentError("exit challenge does not exist")
            record = self._exits.get(uid)
            require(
                record is not None and record.state == ExitState.CHALLENGED,
                "exit is not challenged",
                log,
            )
            require(respond.uid == uid, "response references a different asset", log)
            require(respond.amount == challenge.amount, "response moves a different amount", log)
            require(
                challenge.new_owner == respond.signer,
                "response is not signed by the challenge's new owner",
                log,
            )
            require(respond.nonce == challenge.nonce + 1, "response nonce must follow the challenge", log)
            require(
                block_number <= record.prior_block,
                "response must be included no later than the prior transaction",
                log,
            )
            require(
                self._tx_included(respond, proof, block_number),
                "response is not included in its block",
                log,
            )

            state = self._resolve(
                record,
                challenge.raw,
                {"method": "transaction", "respond_tx": respond.raw.hex(), "block_number": block_number},
            )
        log.info("Exit challenge answered", extra={"state": state.name})
        return state

    def respond_challenge_exit_with_checkpoint(
        self,
        challenge_tx: bytes,
        checkpoint_root: bytes,
        proof: bytes,
        higher_nonce: int,
    ) -> ExitState:
        """
        Answer a challenge with a finalized checkpoint recording a nonce above
        the challenge's nonce.

        Raises:
            AbsentError: Challenge or checkpoint unknown
            PreconditionFailedError: Exit not challenged, checkpoint not
                finalized or still disputed, nonce not higher, proof failure
        """
        challenge = self._decode(challenge_tx)
        uid = challenge.uid
        root = bytes(checkpoint_root)
        log = get_logger(__name__, trace_id=_aggregate(uid))

        with self._locks.hold(asset_key(uid)):
            if not self._challenges.exists(uid, challenge.raw):
                raise AbsentError("exit challenge does not exist")
            record = self._exits.get(uid)
            require(
                record is not None and record.state == ExitState.CHALLENGED,
                "exit is not challenged",
                log,
            )
            require(self._checkpoints.is_finalized(root), "checkpoint is not finalized", log)
            require(
                self._checkpoints.dispute_count(uid, root) == 0,
                "checkpoint has open disputes for the asset",
                log,
            )
            require(higher_nonce > challenge.nonce, "checkpoint nonce does not exceed the challenge nonce", log)
            require(
                self._verifier.verify(nonce_leaf(higher_nonce), uid, root, proof),
                "nonce is not recorded in the checkpoint",
                log,
            )

            state = self._resolve(
                record,
                challenge.raw,
                {"method": "checkpoint", "checkpoint_root": root.hex(), "nonce": higher_nonce},
            )
        log.info(
            "Exit challenge answered with checkpoint",
            extra={"state": state.name, "checkpoint": short_hex(root)},
        )
        return state

    def _resolve(self, record: ExitRecord, challenge_tx: bytes, detail: dict) -> ExitState:
        uid = record.uid
        remaining = self._challenges.count(uid) - 1
        state = ExitState.PENDING if remaining == 0 else ExitState.CHALLENGED
        payload = {"challenge_tx": challenge_tx.hex(), "state": state.name}
        payload.update(detail)
        self._emit(EXIT_CHALLENGE_RESPONDED, _aggregate(uid), self._clock.now(), payload)
        self._challenges.remove(uid, challenge_tx)
        if state != record.state:
            self._exits[uid] = replace(record, state=state)
        return state

    def finish_exit(
        self,
        caller: str,
        prior_tx: bytes,
        prior_proof: bytes,
        prior_block: int,
        last_tx: bytes,
        last_proof: bytes,
        last_block: int,
    ) -> ExitRecord:
        """
        Finalize an unchallenged exit after its deadline.

        Returns:
            The FINALIZED ExitRecord

        Raises:
            AbsentError: No exit for the asset
            PreconditionFailedError: Deadline not reached, exit not pending,
                open challenges, wrong caller, mismatched transactions or
                proof failure
        """
        last = self._decode(last_tx)
        uid = last.uid
        log = get_logger(__name__, trace_id=_aggregate(uid))

        with self._locks.hold(asset_key(uid)):
            record = self._exits.get(uid)
            if record is None:
                raise AbsentError(f"no exit for asset {uid}")
            now = self._clock.now()
            require(now > record.deadline, "exit challenge period has not elapsed", log)
            require(record.state == ExitState.PENDING, "exit is not pending", log)
            require(self._challenges.count(uid) == 0, "exit has open challenges", log)
            require(caller == record.owner, "caller is not the exiting owner", log)
            require(
                bytes(prior_tx) == record.prior_tx.raw
                and prior_block == record.prior_block
                and last.raw == record.last_tx.raw
                and last_block == record.last_block,
                "transactions do not match the recorded exit",
                log,
            )
            require(
                self._tx_included(record.prior_tx, prior_proof, prior_block),
                "prior transaction is not included in its block",
                log,
            )
            require(
                self._tx_included(last, last_proof, last_block),
                "last transaction is not included in its block",
                log,
            )

            finalized = replace(record, state=ExitState.FINALIZED)
            self._emit(
                EXIT_FINALIZED,
                _aggregate(uid),
                now,
                {"owner": record.owner, "amount": record.last_tx.amount},
            )
            self._exits[uid] = finalized
            self._custody.clear(uid)
        log.info("Exit finalized", extra={"owner": record.owner})
        return finalized
