"""
Tests for the one-shot block builder.

Critical: a block is built at most once, its root is independent of
insertion order, and persistence never half-applies.
"""

import threading

import pytest

from settlement.block import CheckpointBlock, TransactionBlock, nonce_leaf
from settlement.core.errors import (
    AlreadyBuiltError,
    DuplicateEntryError,
    InvalidEncodingError,
    PreconditionFailedError,
)
from settlement.core.hashing import ZERO_HASH_BYTES
from settlement.merkle import SparseMerkleVerifier
from settlement.tx import encode_transaction
from settlement.tx.codec import transaction_leaf


def _checkpoint(entries):
    block = CheckpointBlock()
    for uid, nonce in entries:
        block.add_checkpoint(uid, nonce)
    return block


def test_unbuilt_block_has_zero_root_and_no_proofs():
    block = _checkpoint([(7, 4)])

    assert not block.is_built()
    assert block.root() == ZERO_HASH_BYTES
    assert block.proof(7) is None
    assert block.get_nonce(7) is None


def test_build_once():
    block = _checkpoint([(7, 4)])
    root = block.build()

    assert block.is_built()
    assert block.root() == root
    with pytest.raises(AlreadyBuiltError):
        block.build()
    with pytest.raises(AlreadyBuiltError):
        block.add_checkpoint(8, 1)
    assert block.root() == root


def test_duplicate_entry_rejected():
    block = _checkpoint([(7, 4)])

    with pytest.raises(DuplicateEntryError):
        block.add_checkpoint(7, 5)
    assert block.entry_count() == 1


def test_invalid_entries_rejected():
    block = CheckpointBlock()

    with pytest.raises(PreconditionFailedError):
        block.add_checkpoint(-1, 1)
    with pytest.raises(PreconditionFailedError):
        block.add_checkpoint(1, -1)
    with pytest.raises(PreconditionFailedError):
        block.add_checkpoint(1, 1 << 256)
    assert len(block) == 0


def test_root_independent_of_insertion_order():
    entries = [(7, 4), (1, 9), (123456789, 2), (2 ** 200, 1)]

    a = _checkpoint(entries).build()
    b = _checkpoint(list(reversed(entries))).build()

    assert a == b


def test_empty_block_root_differs_from_zero_hash():
    block = CheckpointBlock()

    root = block.build()

    assert root != ZERO_HASH_BYTES
    assert block.entry_count() == 0


def test_proofs_verify_for_every_entry():
    entries = [(0, 1), (1, 2), (7, 4), (2 ** 255, 3)]
    block = _checkpoint(entries)
    root = block.build()
    verifier = SparseMerkleVerifier()

    for uid, nonce in entries:
        assert block.get_nonce(uid) == nonce
        assert verifier.verify(nonce_leaf(nonce), uid, root, block.proof(uid))
        assert not verifier.verify(nonce_leaf(nonce + 1), uid, root, block.proof(uid))

    assert block.proof(8) is None
    assert block.uids() == tuple(sorted(uid for uid, _ in entries))


def test_serialize_is_canonical():
    a = _checkpoint([(7, 4), (10, 1)])
    b = _checkpoint([(10, 1), (7, 4)])

    assert a.serialize() == b.serialize() == b'{"10":1,"7":4}'


def test_deserialize_round_trip():
    source = _checkpoint([(7, 4), (10, 1)])
    expected = source.build()

    restored = CheckpointBlock()
    restored.deserialize(source.serialize())

    assert not restored.is_built()
    assert restored.entry_count() == 2
    assert restored.build() == expected


def test_deserialize_empty_input_is_noop():
    block = _checkpoint([(7, 4)])

    block.deserialize(b"")

    assert block.entry_count() == 1


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2]",
        b'{"7": 4, "7": 5}',
        b'{"07": 4}',
        b'{"-1": 4}',
        b'{"x": 4}',
        b'{"7": "4"}',
        b'{"7": -4}',
        b'{"7": true}',
    ],
)
def test_deserialize_rejects_malformed_input(raw):
    block = CheckpointBlock()

    with pytest.raises(InvalidEncodingError):
        block.deserialize(raw)
    assert block.entry_count() == 0


def test_deserialize_is_atomic_on_failure():
    """A bad pair late in the input must not leave earlier pairs behind."""
    block = _checkpoint([(9, 1)])

    with pytest.raises(InvalidEncodingError):
        block.deserialize(b'{"1": 1, "2": 2, "3": "bad"}')
    with pytest.raises(DuplicateEntryError):
        block.deserialize(b'{"1": 1, "9": 2}')

    assert block.uids() == (9,)


def test_deserialize_after_build_rejected():
    block = _checkpoint([(9, 1)])
    block.build()

    with pytest.raises(AlreadyBuiltError):
        block.deserialize(b'{"1": 1}')


def test_concurrent_producers():
    block = CheckpointBlock()
    errors = []

    def produce(offset):
        try:
            for i in range(50):
                block.add_checkpoint(offset * 1000 + i, i + 1)
        except Exception as ex:  # pragma: no cover
            errors.append(ex)

    threads = [threading.Thread(target=produce, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert block.entry_count() == 400
    assert block.build() == _checkpoint(
        [(n * 1000 + i, i + 1) for n in range(8) for i in range(50)]
    ).build()


def test_concurrent_build_succeeds_once():
    block = _checkpoint([(1, 1), (2, 2)])
    roots = []
    failures = []
    barrier = threading.Barrier(6)

    def build():
        barrier.wait()
        try:
            roots.append(block.build())
        except AlreadyBuiltError:
            failures.append(1)

    threads = [threading.Thread(target=build) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(roots) == 1
    assert len(failures) == 5


def test_transaction_block(keys):
    raw = encode_transaction(keys["alice"], 7, 100, 3, 0, keys["bob"].address)
    block = TransactionBlock()
    block.add_transaction(7, raw)
    root = block.build()

    assert block.value_of(7) == raw
    assert SparseMerkleVerifier().verify(transaction_leaf(raw), 7, root, block.proof(7))

    restored = TransactionBlock()
    restored.deserialize(block.serialize())
    assert restored.build() == root


def test_transaction_block_rejects_empty_payload():
    block = TransactionBlock()

    with pytest.raises(PreconditionFailedError):
        block.add_transaction(7, b"")


@pytest.mark.parametrize("depth", [1, 0, -3])
def test_unusable_depth_rejected(depth):
    with pytest.raises(PreconditionFailedError, match="depth"):
        CheckpointBlock(depth=depth)
