"""
Plasma CLI - settlement layer tooling

Commands:
- plasma block build/proof/verify - Checkpoint blocks and inclusion proofs
- plasma journal tail/verify - Settlement journal inspection
- plasma keys generate - Owner keypairs
"""

__version__ = "0.1.0"
