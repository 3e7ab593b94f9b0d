"""
Merkle inclusion proof verification.
"""

import hmac
from typing import Optional

from ..ledger.interfaces import ProofVerifier
from .tree import DEPTH_257, check_depth, compute_root


class SparseMerkleVerifier(ProofVerifier):
    """
    Verifies compressed sparse Merkle proofs of a fixed depth.

    Example:
        >>> verifier = SparseMerkleVerifier()
        >>> verifier.verify(leaf, 7, block.root(), block.proof(7))
        True
    """

    def __init__(self, depth: int = DEPTH_257) -> None:
        self.depth = check_depth(depth)

    def verify(self, leaf: bytes, asset_id: int, root: Optional[bytes], proof: Optional[bytes]) -> bool:
        if root is None or proof is None:
            return False
        computed = compute_root(leaf, asset_id, proof, self.depth)
        if computed is None:
            return False
        return hmac.compare_digest(computed, root)
