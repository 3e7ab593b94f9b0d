"""
Fixed-depth sparse Merkle tree.

The key space of a tree of depth D (levels, leaf level included) holds
2^(D-1) leaves. Only populated paths are materialized; every other subtree
resolves to a default node that depends on its level alone.

Proof format (compressed):
    bitmap   ceil((D-1)/8) bytes, big-endian integer, bit i = level i
    siblings 32 bytes for each set bit, in level order

A set bit means the sibling at that level differs from the default node.
"""

from functools import lru_cache
from typing import Dict, List, Mapping, Optional, Tuple

from ..core.errors import PreconditionFailedError
from ..core.hashing import HASH_SIZE, ZERO_HASH_BYTES, hash_pair, sha256

DEPTH_257 = 257


@lru_cache(maxsize=None)
def default_nodes(depth: int) -> Tuple[bytes, ...]:
    """
    Default hash per level for an empty subtree, memoized per depth.

    default[0] = sha256(32 zero bytes)
    default[i] = sha256(default[i-1] || default[i-1])
    """
    if depth < 2:
        raise ValueError(f"tree depth must be at least 2, got {depth}")
    nodes = [sha256(ZERO_HASH_BYTES)]
    for level in range(1, depth):
        prev = nodes[level - 1]
        nodes.append(hash_pair(prev, prev))
    return tuple(nodes)


def check_depth(depth: int) -> int:
    """
    Raises:
        PreconditionFailedError: If depth cannot hold a leaf level and a root
    """
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 2:
        raise PreconditionFailedError(f"tree depth must be at least 2, got {depth!r}")
    return depth


def bitmap_size(depth: int) -> int:
    return (depth - 1 + 7) // 8


def key_space(depth: int) -> int:
    return 1 << (depth - 1)


class SparseMerkleTree:
    """
    Immutable sparse Merkle tree built from an id -> leaf mapping.

    Construction touches n*D nodes for n populated leaves.
    """

    def __init__(self, leaves: Mapping[int, bytes], depth: int = DEPTH_257) -> None:
        self.depth = depth
        self.default_nodes = default_nodes(depth)
        limit = key_space(depth)
        for uid, leaf in leaves.items():
            if uid < 0 or uid >= limit:
                raise ValueError(f"id {uid} outside key space of depth {depth}")
            if len(leaf) != HASH_SIZE:
                raise ValueError(f"leaf for id {uid} must be {HASH_SIZE} bytes")
        self._levels = self._build(dict(leaves))

    def _build(self, leaves: Dict[int, bytes]) -> List[Dict[int, bytes]]:
        levels = [leaves]
        for level in range(self.depth - 1):
            current = levels[level]
            default = self.default_nodes[level]
            parents: Dict[int, bytes] = {}
            for index in current:
                parent = index >> 1
                if parent in parents:
                    continue
                if index & 1:
                    left = current.get(index - 1, default)
                    right = current[index]
                else:
                    left = current[index]
                    right = current.get(index + 1, default)
                parents[parent] = hash_pair(left, right)
            levels.append(parents)
        return levels

    def root(self) -> bytes:
        return self._levels[-1].get(0, self.default_nodes[-1])

    def leaf(self, uid: int) -> Optional[bytes]:
        return self._levels[0].get(uid)

    def __contains__(self, uid: int) -> bool:
        return uid in self._levels[0]

    def __len__(self) -> int:
        return len(self._levels[0])

    def create_proof(self, uid: int) -> bytes:
        """
        Compressed sibling path for uid.

        Works for any id in the key space; for an absent id the path proves
        the default leaf.
        """
        bits = 0
        siblings = []
        index = uid
        for level in range(self.depth - 1):
            sibling = self._levels[level].get(index ^ 1)
            if sibling is not None and sibling != self.default_nodes[level]:
                bits |= 1 << level
                siblings.append(sibling)
            index >>= 1
        bitmap = bits.to_bytes(bitmap_size(self.depth), "big")
        return bitmap + b"".join(siblings)


def compute_root(leaf: bytes, uid: int, proof: bytes, depth: int = DEPTH_257) -> Optional[bytes]:
    """
    Recompute the root implied by leaf, uid and a compressed proof.

    Returns:
        Root bytes, or None if the proof is malformed
    """
    if uid < 0 or uid >= key_space(depth) or len(leaf) != HASH_SIZE:
        return None
    size = bitmap_size(depth)
    if len(proof) < size or (len(proof) - size) % HASH_SIZE:
        return None
    bits = int.from_bytes(proof[:size], "big")
    if bits >> (depth - 1):
        return None
    siblings = proof[size:]
    if len(siblings) // HASH_SIZE != bin(bits).count("1"):
        return None

    defaults = default_nodes(depth)
    computed = leaf
    index = uid
    offset = 0
    for level in range(depth - 1):
        if (bits >> level) & 1:
            sibling = siblings[offset : offset + HASH_SIZE]
            offset += HASH_SIZE
        else:
            sibling = defaults[level]
        if index & 1:
            computed = hash_pair(sibling, computed)
        else:
            computed = hash_pair(computed, sibling)
        index >>= 1
    return computed
