"""
EventStore interface and in-memory implementation.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Optional

from ..core.events import Event
from .integrity import ZERO_HASH, chain_record, event_from_dict


@dataclass(frozen=True)
class AppendResult:
    event: Event
    seq: int
    event_hash: str
    prev_hash: str


class EventStore(ABC):
    """
    Abstract journal storage.

    All implementations must guarantee:
    - Append-only (no updates, no deletes)
    - Sequential ordering (events indexed by seq from 0)
    - Hash chain over every record
    """

    @abstractmethod
    def append(self, event: Event) -> AppendResult:
        """
        Append event, assigning its seq.

        Raises:
            EventStoreError: If the append cannot be made durable
        """
        ...

    @abstractmethod
    def records(self) -> Iterator[Dict[str, Any]]:
        """Raw chain records in seq order."""
        ...

    def read(self, aggregate_id: Optional[str] = None, from_seq: int = 0) -> Iterator[Event]:
        """
        Read events in seq order.

        Args:
            aggregate_id: Filter by aggregate ID (None = all)
            from_seq: Start from this sequence number (inclusive)
        """
        for rec in self.records():
            ev = event_from_dict(rec["event"])
            if ev.require_seq() < from_seq:
                continue
            if aggregate_id is not None and ev.aggregate_id != aggregate_id:
                continue
            yield ev


class MemoryEventStore(EventStore):
    """Journal kept in process memory; default when no journal path is configured."""

    def __init__(self) -> None:
        self._records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def append(self, event: Event) -> AppendResult:
        with self._lock:
            prev_hash = self._records[-1]["event_hash"] if self._records else ZERO_HASH
            seq = len(self._records)
            stored = replace(event, seq=seq)
            rec = chain_record(prev_hash, stored)
            self._records.append(rec)
            return AppendResult(event=stored, seq=seq, event_hash=rec["event_hash"], prev_hash=prev_hash)

    def records(self) -> Iterator[Dict[str, Any]]:
        with self._lock:
            snapshot = list(self._records)
        return iter(snapshot)

    def __len__(self) -> int:
        return len(self._records)
