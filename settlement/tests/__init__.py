"""
Test suite for the settlement layer.

Focus areas:
- Sparse Merkle construction and proofs
- Block builder one-shot semantics and persistence
- Dispute registry compaction
- Exit and checkpoint dispute lifecycles
- Journal hash chain integrity
"""
