"""
Sparse Merkle tree construction and proof verification.
"""

from .tree import DEPTH_257, SparseMerkleTree, compute_root, default_nodes
from .verify import SparseMerkleVerifier

__all__ = [
    "DEPTH_257",
    "SparseMerkleTree",
    "compute_root",
    "default_nodes",
    "SparseMerkleVerifier",
]
