"""
File-based journal using append-only JSONL format.

Each line is a hash chain record with prev_hash, event_hash and event data.
"""

import json
import os
from dataclasses import replace
from typing import Any, Dict, Iterator, Tuple

from ..core.canonical import canonical_json_str
from ..core.errors import EventStoreError
from ..core.events import Event
from .integrity import ZERO_HASH, chain_record
from .store import AppendResult, EventStore

try:
    import fcntl
except ImportError:  # Windows or unsupported platform
    fcntl = None


class FileEventStore(EventStore):
    """
    File-based append-only journal.

    Storage format: JSONL (newline-delimited JSON)
    Each line: {"prev_hash": "...", "event_hash": "...", "event": {...}}

    Guarantees:
    - Append-only (no mutations)
    - Fsync after each append (durability)
    - Exclusive flock around read-last + write, so several processes may share a file
    """

    def __init__(self, path: str) -> None:
        self.path = path

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

        if not os.path.exists(path):
            with open(path, "wb") as f:
                f.write(b"")

    def _last_seq_and_hash(self, f) -> Tuple[int, str]:
        """
        Returns:
            (last_seq, last_hash), or (-1, ZERO_HASH) if the journal is empty
        """
        last_seq = -1
        last_hash = ZERO_HASH
        f.seek(0)
        for line in f:
            if not line.strip():
                continue
            rec = json.loads(line)
            last_seq = rec["event"]["seq"]
            last_hash = rec["event_hash"]
        return last_seq, last_hash

    def append(self, event: Event) -> AppendResult:
        try:
            with open(self.path, "a+b") as f:
                if fcntl:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    last_seq, last_hash = self._last_seq_and_hash(f)
                    stored = replace(event, seq=last_seq + 1)
                    rec = chain_record(last_hash, stored)
                    line = canonical_json_str(rec) + "\n"

                    f.seek(0, os.SEEK_END)
                    f.write(line.encode("utf-8"))
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    if fcntl:
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except (OSError, ValueError) as ex:
            raise EventStoreError(str(ex)) from ex

        return AppendResult(
            event=stored,
            seq=stored.require_seq(),
            event_hash=rec["event_hash"],
            prev_hash=last_hash,
        )

    def records(self) -> Iterator[Dict[str, Any]]:
        with open(self.path, "rb") as f:
            for line in f:
                if not line.strip():
                    continue
                yield json.loads(line)
