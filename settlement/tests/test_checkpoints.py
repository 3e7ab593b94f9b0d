"""
Tests for the checkpoint dispute controller.
"""

import pytest

from settlement.core.errors import AbsentError, DuplicateEntryError, PreconditionFailedError
from settlement.core.events import (
    BLOCK_SUBMITTED,
    CHECKPOINT_CHALLENGE_RESPONDED,
    CHECKPOINT_CHALLENGED,
    CHECKPOINT_CREATED,
)
from settlement.tests.helpers import ASSET, CHECKPOINT_PERIOD


def _challenge(harness, checkpoint, later, block_number, claimed=9):
    harness.chain.checkpoints.challenge_checkpoint(
        ASSET, checkpoint.root(), checkpoint.proof(ASSET), claimed,
        later, harness.proof(block_number), block_number,
    )


def test_create_checkpoint(harness):
    checkpoint = harness.checkpoint({ASSET: 9})
    controller = harness.chain.checkpoints

    record = controller.get_checkpoint(checkpoint.root())

    assert record.created_at == 1000
    assert record.window_end(CHECKPOINT_PERIOD) == 1000 + CHECKPOINT_PERIOD
    with pytest.raises(DuplicateEntryError):
        harness.chain.new_checkpoint(checkpoint.root())
    with pytest.raises(PreconditionFailedError):
        harness.chain.new_checkpoint(b"\x01" * 31)
    assert harness.journal_types() == [CHECKPOINT_CREATED]


def test_finalization_window(harness, clock):
    checkpoint = harness.checkpoint({ASSET: 9})
    controller = harness.chain.checkpoints

    assert not controller.is_finalized(checkpoint.root())
    clock.advance(CHECKPOINT_PERIOD)
    assert not controller.is_finalized(checkpoint.root())
    clock.advance(1)
    assert controller.is_finalized(checkpoint.root())
    with pytest.raises(AbsentError):
        controller.is_finalized(b"\x02" * 32)


def test_challenge_and_respond(harness):
    checkpoint = harness.checkpoint({ASSET: 9})
    later = harness.tx("alice", 3, "bob")
    harness.publish(10, {ASSET: later})
    controller = harness.chain.checkpoints

    _challenge(harness, checkpoint, later, 10)

    assert controller.dispute_count(ASSET, checkpoint.root()) == 1
    assert controller.dispute_exists(ASSET, checkpoint.root(), later)
    with pytest.raises(DuplicateEntryError):
        _challenge(harness, checkpoint, later, 10)

    respond = harness.tx("bob", 4, "carol", prev_block=10)
    harness.publish(11, {ASSET: respond})
    controller.respond_checkpoint_challenge(ASSET, checkpoint.root(), later, respond, harness.proof(11), 11)

    assert controller.dispute_count(ASSET, checkpoint.root()) == 0
    assert not controller.dispute_exists(ASSET, checkpoint.root(), later)
    assert harness.journal_types() == [
        CHECKPOINT_CREATED,
        BLOCK_SUBMITTED,
        CHECKPOINT_CHALLENGED,
        BLOCK_SUBMITTED,
        CHECKPOINT_CHALLENGE_RESPONDED,
    ]


def test_claimed_nonce_must_exceed_ledger_nonce(harness):
    checkpoint = harness.checkpoint({ASSET: 3})
    later = harness.tx("alice", 3, "bob")
    harness.publish(10, {ASSET: later})

    with pytest.raises(PreconditionFailedError, match="does not exceed"):
        _challenge(harness, checkpoint, later, 10, claimed=3)
    assert harness.chain.checkpoints.dispute_count(ASSET, checkpoint.root()) == 0


def test_claimed_nonce_must_be_in_checkpoint(harness):
    checkpoint = harness.checkpoint({ASSET: 9})
    later = harness.tx("alice", 3, "bob")
    harness.publish(10, {ASSET: later})

    with pytest.raises(PreconditionFailedError, match="not recorded"):
        _challenge(harness, checkpoint, later, 10, claimed=8)


def test_challenge_after_window_rejected(harness, clock):
    checkpoint = harness.checkpoint({ASSET: 9})
    later = harness.tx("alice", 3, "bob")
    harness.publish(10, {ASSET: later})
    clock.advance(CHECKPOINT_PERIOD + 1)

    with pytest.raises(PreconditionFailedError, match="window"):
        _challenge(harness, checkpoint, later, 10)


def test_challenge_unknown_checkpoint(harness):
    checkpoint = harness.checkpoint({ASSET: 9})
    later = harness.tx("alice", 3, "bob")
    harness.publish(10, {ASSET: later})

    with pytest.raises(AbsentError):
        harness.chain.checkpoints.challenge_checkpoint(
            ASSET, b"\x03" * 32, checkpoint.proof(ASSET), 9, later, harness.proof(10), 10
        )


def test_challenge_transaction_must_reference_asset(harness):
    checkpoint = harness.checkpoint({ASSET: 9, 8: 9})
    later = harness.tx("alice", 3, "bob", uid=8)
    harness.publish(10, {8: later})

    with pytest.raises(PreconditionFailedError):
        harness.chain.checkpoints.challenge_checkpoint(
            ASSET, checkpoint.root(), checkpoint.proof(ASSET), 9, later, harness.proof(10, 8), 10
        )


def test_response_must_continue_custody(harness):
    checkpoint = harness.checkpoint({ASSET: 9})
    later = harness.tx("alice", 3, "bob")
    harness.publish(10, {ASSET: later})
    _challenge(harness, checkpoint, later, 10)
    forged = harness.tx("dave", 4, "carol", prev_block=10)
    harness.publish(11, {ASSET: forged})
    controller = harness.chain.checkpoints

    with pytest.raises(PreconditionFailedError, match="new owner"):
        controller.respond_checkpoint_challenge(ASSET, checkpoint.root(), later, forged, harness.proof(11), 11)
    with pytest.raises(AbsentError):
        controller.respond_checkpoint_challenge(ASSET, checkpoint.root(), forged, later, harness.proof(10), 10)
    assert controller.dispute_count(ASSET, checkpoint.root()) == 1


def test_disputes_are_scoped_by_asset_and_root(harness):
    first = harness.checkpoint({ASSET: 9})
    second = harness.checkpoint({ASSET: 9, 8: 1})
    later = harness.tx("alice", 3, "bob")
    harness.publish(10, {ASSET: later})
    controller = harness.chain.checkpoints

    _challenge(harness, first, later, 10)

    assert controller.dispute_count(ASSET, first.root()) == 1
    assert controller.dispute_count(ASSET, second.root()) == 0
    assert controller.dispute_count(8, first.root()) == 0


class TestHistoricalCheckpointResponse:
    def test_older_finalized_checkpoint_resolves(self, harness, clock):
        older = harness.checkpoint({ASSET: 9})
        clock.advance(CHECKPOINT_PERIOD + 1)
        disputed = harness.checkpoint({ASSET: 9, 8: 1})
        later = harness.tx("alice", 3, "bob")
        harness.publish(10, {ASSET: later})
        _challenge(harness, disputed, later, 10)
        controller = harness.chain.checkpoints

        controller.respond_with_historical_checkpoint(
            ASSET, disputed.root(), disputed.proof(ASSET), older.root(), older.proof(ASSET), later, 9
        )

        assert controller.dispute_count(ASSET, disputed.root()) == 0
        assert harness.journal_types()[-1] == CHECKPOINT_CHALLENGE_RESPONDED

    def test_older_checkpoint_must_be_finalized(self, harness, clock):
        older = harness.checkpoint({ASSET: 9})
        clock.advance(10)
        disputed = harness.checkpoint({ASSET: 9, 8: 1})
        later = harness.tx("alice", 3, "bob")
        harness.publish(10, {ASSET: later})
        _challenge(harness, disputed, later, 10)

        with pytest.raises(PreconditionFailedError, match="not finalized"):
            harness.chain.checkpoints.respond_with_historical_checkpoint(
                ASSET, disputed.root(), disputed.proof(ASSET), older.root(), older.proof(ASSET), later, 9
            )

    def test_older_checkpoint_must_predate_disputed(self, harness, clock):
        disputed = harness.checkpoint({ASSET: 9, 8: 1})
        later = harness.tx("alice", 3, "bob")
        harness.publish(10, {ASSET: later})
        _challenge(harness, disputed, later, 10)
        clock.advance(CHECKPOINT_PERIOD + 10)
        newer = harness.checkpoint({ASSET: 9})
        clock.advance(CHECKPOINT_PERIOD + 1)

        with pytest.raises(PreconditionFailedError, match="predate"):
            harness.chain.checkpoints.respond_with_historical_checkpoint(
                ASSET, disputed.root(), disputed.proof(ASSET), newer.root(), newer.proof(ASSET), later, 9
            )
        assert harness.chain.checkpoints.dispute_count(ASSET, disputed.root()) == 1

    def test_nonce_must_be_recorded_in_both(self, harness, clock):
        older = harness.checkpoint({ASSET: 8})
        clock.advance(CHECKPOINT_PERIOD + 1)
        disputed = harness.checkpoint({ASSET: 9})
        later = harness.tx("alice", 3, "bob")
        harness.publish(10, {ASSET: later})
        _challenge(harness, disputed, later, 10)
        controller = harness.chain.checkpoints

        with pytest.raises(PreconditionFailedError, match="disputed checkpoint"):
            controller.respond_with_historical_checkpoint(
                ASSET, disputed.root(), disputed.proof(ASSET), older.root(), older.proof(ASSET), later, 8
            )
        with pytest.raises(PreconditionFailedError, match="historical checkpoint"):
            controller.respond_with_historical_checkpoint(
                ASSET, disputed.root(), disputed.proof(ASSET), older.root(), older.proof(ASSET), later, 9
            )
        with pytest.raises(PreconditionFailedError, match="does not exceed"):
            controller.respond_with_historical_checkpoint(
                ASSET, disputed.root(), disputed.proof(ASSET), older.root(), older.proof(ASSET), later, 2
            )
