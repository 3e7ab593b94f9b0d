"""
Test harness: signs transactions and publishes them in ledger blocks.
"""

from typing import Dict, Tuple

from settlement.block import CheckpointBlock, TransactionBlock
from settlement.chain import RootChain
from settlement.tx import SigningKey, encode_transaction

EXIT_PERIOD = 100
CHECKPOINT_PERIOD = 50
AMOUNT = 100
ASSET = 7

OWNER_NAMES = ("alice", "bob", "carol", "dave", "eve")


class Harness:
    """Builds signed transactions and publishes ledger blocks and checkpoints."""

    def __init__(self, chain: RootChain, keys: Dict[str, SigningKey]) -> None:
        self.chain = chain
        self.keys = keys
        self._proofs: Dict[Tuple[int, int], bytes] = {}

    def address(self, name: str) -> str:
        return self.keys[name].address

    def tx(self, signer: str, nonce: int, new_owner: str, uid: int = ASSET,
           prev_block: int = 0, amount: int = AMOUNT) -> bytes:
        return encode_transaction(self.keys[signer], uid, amount, nonce, prev_block, self.address(new_owner))

    def publish(self, block_number: int, txs: Dict[int, bytes]) -> bytes:
        block = TransactionBlock()
        for uid, raw in txs.items():
            block.add_transaction(uid, raw)
        block.build()
        for uid in txs:
            self._proofs[(block_number, uid)] = block.proof(uid)
        return self.chain.submit_transaction_block(block_number, block)

    def proof(self, block_number: int, uid: int = ASSET) -> bytes:
        return self._proofs[(block_number, uid)]

    def checkpoint(self, nonces: Dict[int, int]) -> CheckpointBlock:
        block = CheckpointBlock()
        for uid, nonce in nonces.items():
            block.add_checkpoint(uid, nonce)
        block.build()
        self.chain.new_checkpoint_from_block(block)
        return block

    def journal_types(self):
        return [rec["event"]["type"] for rec in self.chain.journal.records()]
