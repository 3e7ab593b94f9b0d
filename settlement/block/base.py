"""
Block builder over a sparse Merkle tree.

A block accumulates (asset id, value) entries from any number of producers,
is built exactly once, and is immutable afterwards. Subclasses decide how a
value becomes a 32-byte leaf and how it is persisted.
"""

import re
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from ..core.canonical import canonical_json_bytes, strict_json_loads
from ..core.errors import (
    AlreadyBuiltError,
    DuplicateEntryError,
    InvalidEncodingError,
    PreconditionFailedError,
)
from ..core.hashing import ZERO_HASH_BYTES
from ..merkle.tree import DEPTH_257, SparseMerkleTree, check_depth, key_space

V = TypeVar("V")

_DECIMAL_ID = re.compile(r"0|[1-9][0-9]*")


class SparseBlock(ABC, Generic[V]):
    """
    One-shot block builder.

    Guarantees:
    - add_entry, build and deserialize are serialized by one lock per block
    - at most one build succeeds; no entry is accepted after it
    - reads after build need no synchronization
    """

    def __init__(self, depth: int = DEPTH_257) -> None:
        self.depth = check_depth(depth)
        self._lock = threading.Lock()
        self._uids: List[int] = []
        self._values: Dict[int, V] = {}
        self._tree: Optional[SparseMerkleTree] = None
        self._built = False

    @abstractmethod
    def leaf_for(self, value: V) -> bytes:
        """32-byte Merkle leaf for value."""
        ...

    @abstractmethod
    def _check_value(self, value: Any) -> V:
        """Validate and normalize a value; raise PreconditionFailedError if unusable."""
        ...

    @abstractmethod
    def _encode_value(self, value: V) -> Any:
        ...

    @abstractmethod
    def _decode_value(self, encoded: Any) -> V:
        """Raise InvalidEncodingError if encoded is malformed."""
        ...

    def _check_uid(self, uid: int) -> None:
        if isinstance(uid, bool) or not isinstance(uid, int):
            raise PreconditionFailedError(f"asset id must be an integer, got {uid!r}")
        if uid < 0 or uid >= key_space(self.depth):
            raise PreconditionFailedError(f"asset id {uid} outside key space")

    def add_entry(self, uid: int, value: V) -> None:
        """
        Add an entry to the block.

        Raises:
            AlreadyBuiltError: If the block is already built
            DuplicateEntryError: If uid is already in the block
            PreconditionFailedError: If uid or value is unusable
        """
        self._check_uid(uid)
        value = self._check_value(value)
        with self._lock:
            self._insert_locked(uid, value)

    def _insert_locked(self, uid: int, value: V) -> None:
        if self._built:
            raise AlreadyBuiltError("block is already built")
        if uid in self._values:
            raise DuplicateEntryError(f"entry for uid {uid} already exists in the block")
        self._uids.append(uid)
        self._values[uid] = value

    def build(self) -> bytes:
        """
        Build the tree and freeze the block.

        Returns:
            Root hash

        Raises:
            AlreadyBuiltError: On a second call
        """
        with self._lock:
            if self._built:
                raise AlreadyBuiltError("block is already built")
            self._uids.sort()
            leaves = {uid: self.leaf_for(self._values[uid]) for uid in self._uids}
            self._tree = SparseMerkleTree(leaves, self.depth)
            self._built = True
            return self._tree.root()

    def is_built(self) -> bool:
        return self._built

    def root(self) -> bytes:
        """Zero hash before build, the fixed root after."""
        if not self._built:
            return ZERO_HASH_BYTES
        return self._tree.root()

    def proof(self, uid: int) -> Optional[bytes]:
        """
        Inclusion proof for uid.

        Returns:
            None before build or if uid was never added
        """
        if not self._built or uid not in self._tree:
            return None
        return self._tree.create_proof(uid)

    def value_of(self, uid: int) -> Optional[V]:
        if not self._built:
            return None
        return self._values.get(uid)

    def uids(self) -> Tuple[int, ...]:
        return tuple(sorted(self._values))

    def entry_count(self) -> int:
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def serialize(self) -> bytes:
        """
        Canonical encoding of the id -> value mapping.

        Keys are decimal id strings; output is byte-identical for equal
        mappings regardless of insertion order.
        """
        with self._lock:
            mapping = {str(uid): self._encode_value(v) for uid, v in self._values.items()}
        return canonical_json_bytes(mapping)

    def deserialize(self, raw: bytes) -> None:
        """
        Load entries from serialize() output.

        Every pair is validated before any is inserted, so a failure leaves
        the block untouched. The build flag is never set.

        Raises:
            InvalidEncodingError: Malformed input (bad JSON, repeated key, bad id or value)
            DuplicateEntryError: An id is already present in the block
            AlreadyBuiltError: The block is already built
        """
        if not raw:
            return
        data = strict_json_loads(raw)
        if not isinstance(data, dict):
            raise InvalidEncodingError("block encoding must be a JSON object")

        pairs = []
        for key, encoded in data.items():
            if not _DECIMAL_ID.fullmatch(key):
                raise InvalidEncodingError(f"invalid asset id key: {key!r}")
            uid = int(key)
            try:
                self._check_uid(uid)
                value = self._check_value(self._decode_value(encoded))
            except PreconditionFailedError as ex:
                raise InvalidEncodingError(str(ex)) from ex
            pairs.append((uid, value))

        with self._lock:
            if self._built:
                raise AlreadyBuiltError("block is already built")
            for uid, _ in pairs:
                if uid in self._values:
                    raise DuplicateEntryError(f"entry for uid {uid} already exists in the block")
            for uid, value in pairs:
                self._insert_locked(uid, value)
