"""
Tests for the RootChain operator surface and the in-memory ledger.
"""

import pytest

from settlement.block import TransactionBlock
from settlement.chain import RootChain
from settlement.core import DeterministicClock, SettlementConfig
from settlement.core.errors import DuplicateEntryError, PreconditionFailedError
from settlement.core.events import BLOCK_SUBMITTED
from settlement.journal import FileEventStore, MemoryEventStore, verify_chain
from settlement.ledger import CustodyRecords, InMemoryBlockLedger


def test_submit_block_records_root(chain):
    chain.submit_block(1, b"\x01" * 32)

    assert chain.ledger.root_at(1) == b"\x01" * 32
    assert chain.ledger.root_at(2) is None
    assert chain.ledger.last_block == 1
    events = list(chain.journal.read())
    assert [e.type for e in events] == [BLOCK_SUBMITTED]
    assert events[0].payload == {"block_number": 1, "root": "01" * 32}


def test_block_numbers_strictly_increase(chain):
    chain.submit_block(5, b"\x01" * 32)

    with pytest.raises(DuplicateEntryError):
        chain.submit_block(5, b"\x02" * 32)
    with pytest.raises(PreconditionFailedError):
        chain.submit_block(4, b"\x02" * 32)
    with pytest.raises(PreconditionFailedError):
        chain.submit_block(6, b"\x02" * 31)

    assert chain.ledger.root_at(5) == b"\x01" * 32
    assert len(chain.journal) == 1


def test_unbuilt_transaction_block_rejected(chain):
    with pytest.raises(PreconditionFailedError):
        chain.submit_transaction_block(1, TransactionBlock())
    assert chain.ledger.last_block == 0


def test_journal_path_selects_file_store(tmp_path):
    path = str(tmp_path / "settlement.log")
    chain = RootChain(config=SettlementConfig(journal_path=path), clock=DeterministicClock(1))

    chain.submit_block(1, b"\x01" * 32)

    assert isinstance(chain.journal, FileEventStore)
    assert verify_chain(FileEventStore(path).records()) == 1


def test_default_journal_is_in_memory(monkeypatch):
    monkeypatch.delenv("PLASMA_JOURNAL_PATH", raising=False)

    assert isinstance(RootChain().journal, MemoryEventStore)


def test_ledger_rejects_rewrites():
    ledger = InMemoryBlockLedger()
    ledger.submit(3, b"\x01" * 32)

    with pytest.raises(DuplicateEntryError):
        ledger.submit(3, b"\x02" * 32)
    with pytest.raises(PreconditionFailedError):
        ledger.submit(2, b"\x02" * 32)
    assert ledger.root_at(3) == b"\x01" * 32


def test_custody_records():
    custody = CustodyRecords()
    custody.register(7, 100)

    with pytest.raises(DuplicateEntryError):
        custody.register(7, 50)
    with pytest.raises(PreconditionFailedError):
        custody.register(8, 0)

    assert custody.value_of(7) == 100
    custody.clear(7)
    assert custody.value_of(7) == 0
    custody.register(7, 50)
    assert custody.value_of(7) == 50
